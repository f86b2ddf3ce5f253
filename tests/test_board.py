"""Unit tests for the shared Board."""

from artifactsfleet import Board, CharacterBoardState, GEOrder

from tests.factories import bank


def _make_board_state(**kwargs) -> CharacterBoardState:
    defaults = {
        "current_action": "gather",
        "target": "mining",
        "position": (2, 0),
        "skill_levels": {"mining": 3},
    }
    defaults.update(kwargs)
    return CharacterBoardState(**defaults)


class TestBoardCharacters:
    def test_update_and_snapshot(self, board: Board):
        board.update_character("alice", _make_board_state())
        snapshot = board.get_snapshot()
        assert snapshot.characters["alice"].target == "mining"
        assert snapshot.characters["alice"].position == (2, 0)

    def test_update_overwrites(self, board: Board):
        board.update_character("alice", _make_board_state())
        board.update_character("alice", _make_board_state(target="combat"))
        assert board.get_snapshot().characters["alice"].target == "combat"

    def test_writer_mutation_does_not_leak(self, board: Board):
        state = _make_board_state()
        board.update_character("alice", state)
        state.skill_levels["mining"] = 99
        assert board.get_snapshot().characters["alice"].skill_levels["mining"] == 3

    def test_snapshot_mutation_does_not_leak(self, board: Board):
        board.update_character("alice", _make_board_state())
        snapshot = board.get_snapshot()
        snapshot.characters["alice"].skill_levels["mining"] = 50
        snapshot.characters["bob"] = _make_board_state()
        fresh = board.get_snapshot()
        assert fresh.characters["alice"].skill_levels["mining"] == 3
        assert "bob" not in fresh.characters

    def test_get_other_characters(self, board: Board):
        board.update_character("alice", _make_board_state())
        board.update_character("bob", _make_board_state(target="combat"))
        others = board.get_other_characters("alice")
        assert list(others) == ["bob"]


class TestBoardBank:
    def test_update_bank_stamps_time(self, board: Board):
        assert board.get_snapshot().bank.last_updated == 0.0
        board.update_bank(bank(copper_ore=10), 250)
        snapshot = board.get_snapshot()
        assert snapshot.bank.quantity("copper_ore") == 10
        assert snapshot.bank.gold == 250
        assert snapshot.bank.last_updated > 0

    def test_bank_snapshot_is_copy(self, board: Board):
        board.update_bank(bank(copper_ore=10), 0)
        snapshot = board.get_snapshot()
        snapshot.bank.items[0].quantity = 0
        assert board.get_snapshot().bank.quantity("copper_ore") == 10

    def test_missing_code_quantity_zero(self, board: Board):
        assert board.get_snapshot().bank.quantity("nothing") == 0


class TestBoardOrders:
    def test_update_ge_orders(self, board: Board):
        board.update_ge_orders([GEOrder(id="o1", code="copper_ore", quantity=5, price=3)])
        orders = board.get_snapshot().ge_orders
        assert [o.id for o in orders] == ["o1"]

    def test_to_dict_is_json_friendly(self, board: Board):
        board.update_character("alice", _make_board_state())
        board.update_bank(bank(copper_ore=1), 5)
        data = board.get_snapshot().to_dict()
        assert data["characters"]["alice"]["target"] == "mining"
        assert data["bank"]["items"] == [{"code": "copper_ore", "quantity": 1}]
        assert data["ge_orders"] == []
