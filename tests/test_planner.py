"""Unit tests for the active plan lifecycle."""

from artifactsfleet import GameData

from services.coordinator.planner import (
    ActivePlan,
    MaterialNeed,
    MaterialSource,
    build_active_plan,
    should_complete_plan,
    should_deposit,
    team_max_skill_level,
    update_plan_progress,
)
from tests.factories import bank, make_character, make_item, make_map, make_monster


def _gear_plan(game_data: GameData) -> ActivePlan:
    plan = build_active_plan("gearcrafting", [make_character()], [], game_data)
    assert plan is not None
    return plan


class TestBuildActivePlan:
    def test_material_graph(self, game_data: GameData):
        plan = _gear_plan(game_data)
        assert plan.target_recipe == "copper_helmet"
        assert plan.material_needs == [
            MaterialNeed("copper_bar", 6, MaterialSource.CRAFT, "copper_bar"),
            MaterialNeed("copper_ore", 10, MaterialSource.GATHER, "copper_rocks"),
        ]
        assert [s.item or s.resource for s in plan.stages] == ["copper_rocks", "copper_bar"]

    def test_monster_drop_material(self):
        game_data = GameData()
        game_data.load(
            [make_map(0, 1, "monster", "chicken")],
            [],
            [make_monster("chicken", 1, ("feather",))],
            [make_item("quill", craft=("gearcrafting", 1, {"feather": 3}))],
        )
        plan = build_active_plan("gearcrafting", [make_character()], [], game_data)
        assert plan.material_needs == [
            MaterialNeed("feather", 3, MaterialSource.MONSTER_DROP, "chicken")
        ]

    def test_combat_plan_targets_monster(self, game_data: GameData):
        plan = build_active_plan("combat", [make_character(level=3)], [], game_data)
        assert plan.target_recipe == "yellow_slime"
        assert plan.material_needs == []
        assert [s.monster for s in plan.stages] == ["yellow_slime"]

    def test_no_recipe(self, game_data: GameData):
        assert build_active_plan("alchemy", [make_character()], [], game_data) is None

    def test_uses_team_max_level(self, game_data: GameData):
        team = [make_character("a", level=1), make_character("b", level=8)]
        plan = build_active_plan("combat", team, [], game_data)
        assert plan.target_recipe == "cow"

    def test_team_max_skill_level_floor(self):
        assert team_max_skill_level([], "mining") == 1


class TestPlanProgress:
    def test_banked_and_in_flight(self, game_data: GameData):
        plan = _gear_plan(game_data)
        carriers = [
            make_character("a", inventory={"copper_ore": 5, "ash_wood": 9}),
            make_character("b", inventory={"copper_ore": 2, "copper_bar": 1}),
        ]
        update_plan_progress(plan, bank(copper_ore=20, feather=3), carriers)
        assert plan.progress.banked == {"copper_ore": 20}
        assert plan.progress.in_flight == {"copper_ore": 7, "copper_bar": 1}

    def test_progress_is_rebuilt(self, game_data: GameData):
        plan = _gear_plan(game_data)
        update_plan_progress(plan, bank(copper_ore=20), [])
        update_plan_progress(plan, [], [])
        assert plan.progress.banked == {}

    def test_record_craft_counts_target_only(self, game_data: GameData):
        plan = _gear_plan(game_data)
        plan.record_craft("copper_bar", 4)
        plan.record_craft("copper_helmet", 2)
        assert plan.progress.crafted == 2


class TestCompletion:
    def test_still_lowest(self, game_data: GameData):
        plan = _gear_plan(game_data)
        assert not should_complete_plan(plan, [make_character()])

    def test_no_longer_lowest(self, game_data: GameData):
        plan = _gear_plan(game_data)
        assert should_complete_plan(plan, [make_character(gearcrafting_level=3)])

    def test_no_characters(self, game_data: GameData):
        assert not should_complete_plan(_gear_plan(game_data), [])

    def test_unknown_skill_completes(self):
        plan = ActivePlan(target_skill="sailing", target_recipe="boat")
        assert should_complete_plan(plan, [make_character()])


class TestShouldDeposit:
    def test_full_batch(self, game_data: GameData):
        plan = _gear_plan(game_data)
        state = make_character(inventory={"copper_ore": 10})
        assert should_deposit(plan, "alice", state, {}, [])

    def test_small_batch_kept(self, game_data: GameData):
        plan = _gear_plan(game_data)
        state = make_character(inventory={"copper_ore": 3})
        assert not should_deposit(plan, "alice", state, {}, [])

    def test_unrelated_items_ignored(self, game_data: GameData):
        plan = _gear_plan(game_data)
        state = make_character(inventory={"ash_wood": 50})
        assert not should_deposit(plan, "alice", state, {}, [])

    def test_starved_crafter(self, game_data: GameData):
        plan = _gear_plan(game_data)
        state = make_character(inventory={"copper_ore": 3})
        assignments = {"bob": "craft:copper_bar"}
        assert should_deposit(plan, "alice", state, assignments, bank(copper_ore=5))

    def test_crafter_with_stock(self, game_data: GameData):
        plan = _gear_plan(game_data)
        state = make_character(inventory={"copper_ore": 3})
        assignments = {"bob": "craft:copper_bar"}
        assert not should_deposit(plan, "alice", state, assignments, bank(copper_ore=10))

    def test_own_craft_stage_ignored(self, game_data: GameData):
        plan = _gear_plan(game_data)
        state = make_character(inventory={"copper_ore": 3})
        assignments = {"alice": "craft:copper_bar"}
        assert not should_deposit(plan, "alice", state, assignments, [])
