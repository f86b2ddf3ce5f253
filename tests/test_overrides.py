"""Unit tests for agent overrides and API error recovery — pure functions."""

import pytest
from artifactsfleet import (
    DepositAll,
    Fight,
    GameData,
    Gather,
    Recovery,
    Rest,
    TaskCancel,
    TaskComplete,
    TaskNew,
    TaskTrade,
    check_inventory_override,
    check_survival_override,
    check_task_override,
    get_error_recovery,
    select_override,
)

from tests.factories import make_character

ON_TASK = {"task": "chicken", "task_type": "monsters", "task_progress": 2, "task_total": 10}


class TestSurvivalOverride:
    def test_rests_below_forty_percent(self):
        assert check_survival_override(make_character(hp=30, max_hp=100)) == Rest()

    def test_no_rest_at_forty_percent(self):
        assert check_survival_override(make_character(hp=40, max_hp=100)) is None

    def test_rest_outranks_everything(self, game_data: GameData):
        state = make_character(
            hp=10, max_hp=100, inventory={"copper_ore": 99}, task="", task_type=""
        )
        goal, _ = select_override(state, game_data)
        assert goal == Rest()


class TestInventoryOverride:
    def test_deposit_near_capacity(self):
        state = make_character(inventory={"copper_ore": 50, "ash_wood": 48}, inventory_max_items=100)
        assert check_inventory_override(state) == DepositAll()

    def test_deposit_at_capacity_margin(self):
        state = make_character(inventory={"copper_ore": 95}, inventory_max_items=100)
        assert check_inventory_override(state) == DepositAll()

    def test_no_deposit_below_margin(self):
        state = make_character(inventory={"copper_ore": 94}, inventory_max_items=100)
        assert check_inventory_override(state) is None

    def test_deposit_on_used_slots(self):
        inventory = {f"item_{i}": 1 for i in range(20)}
        state = make_character(inventory=inventory, inventory_max_items=100)
        assert check_inventory_override(state) == DepositAll()


class TestTaskOverride:
    def test_new_task_when_none(self):
        assert check_task_override(make_character()) == TaskNew()

    def test_complete_when_done(self):
        state = make_character(**{**ON_TASK, "task_progress": 10})
        assert check_task_override(state) == TaskComplete()

    def test_trade_when_holding_enough(self):
        state = make_character(
            task="copper_bar", task_type="items", task_progress=7, task_total=10,
            inventory={"copper_bar": 3},
        )
        assert check_task_override(state) == TaskTrade()

    def test_no_trade_when_short(self):
        state = make_character(
            task="copper_bar", task_type="items", task_progress=0, task_total=10,
            inventory={"copper_bar": 3},
        )
        assert check_task_override(state) is None

    def test_partial_trade_when_inventory_full(self):
        state = make_character(
            task="copper_bar", task_type="items", task_progress=0, task_total=10,
            inventory={"copper_bar": 3, "copper_ore": 93}, inventory_max_items=100,
        )
        assert check_task_override(state) == TaskTrade()

    def test_cancel_unachievable_with_coin(self, game_data: GameData):
        state = make_character(
            task="cow", task_type="monsters", task_total=10, inventory={"tasks_coin": 1}
        )
        assert check_task_override(state, game_data) == TaskCancel()

    def test_no_cancel_without_coin(self, game_data: GameData):
        state = make_character(task="cow", task_type="monsters", task_total=10)
        assert check_task_override(state, game_data) is None

    def test_no_cancel_when_achievable(self, game_data: GameData):
        state = make_character(**ON_TASK, inventory={"tasks_coin": 1})
        assert check_task_override(state, game_data) is None


class TestSelectOverride:
    def test_trade_outranks_deposit(self):
        state = make_character(
            task="copper_bar", task_type="items", task_progress=0, task_total=10,
            inventory={"copper_bar": 3, "copper_ore": 93}, inventory_max_items=100,
        )
        goal, reason = select_override(state)
        assert goal == TaskTrade()
        assert reason.startswith("task override")

    def test_deposit_outranks_new_task(self):
        state = make_character(inventory={"copper_ore": 98}, inventory_max_items=100)
        goal, _ = select_override(state)
        assert goal == DepositAll()

    def test_new_task_when_nothing_else(self):
        goal, _ = select_override(make_character())
        assert goal == TaskNew()

    def test_none_when_all_clear(self, game_data: GameData):
        assert select_override(make_character(**ON_TASK), game_data) is None


class TestErrorRecovery:
    def test_inventory_full_deposits(self):
        assert get_error_recovery(497, make_character(), Gather(resource="x")) == DepositAll()

    def test_task_resolvable_completes(self):
        assert get_error_recovery(475, make_character(), TaskTrade()) == TaskComplete()

    def test_no_task_requests_one(self):
        assert get_error_recovery(487, make_character(), TaskComplete()) == TaskNew()

    @pytest.mark.parametrize("code", [488, 489, 490, 485, 491, 486, 499, 461, 436, 434, 435, 598])
    def test_skip_codes(self, code: int):
        assert get_error_recovery(code, make_character(), Fight(monster="x")) is Recovery.SKIP

    def test_missing_item_on_trade_skips(self):
        assert get_error_recovery(478, make_character(), TaskTrade()) is Recovery.SKIP

    @pytest.mark.parametrize("code", [478, 492, 483, 493, 496, 999])
    def test_unknown_codes(self, code: int):
        assert get_error_recovery(code, make_character(), Gather(resource="x")) is Recovery.UNKNOWN
