"""Unit tests for bottleneck detection, stage construction and stage assignment."""

from artifactsfleet import ALL_SKILLS, Craft, Fight, GameData, Gather, GoalKind

from services.coordinator.pipeline import (
    PipelineStage,
    StageType,
    assign_character_to_stage,
    build_pipeline_stages,
    get_team_bottleneck,
    pipeline_stage_key,
)
from tests.factories import bank, make_character, make_item, make_map, make_monster

TEN = {f"{s}_level": 10 for s in ALL_SKILLS if s != "combat"}


def _member(name: str, **levels: int):
    fields = {"level": 10, **TEN}
    fields.update(levels)
    return make_character(name, **fields)


def _keys(stages: list[PipelineStage]) -> list[str]:
    return [pipeline_stage_key(s) for s in stages]


class TestBottleneck:
    def test_lowest_average_first(self):
        team = [
            _member("a", mining_level=3),
            _member("b", mining_level=4),
            _member("c", mining_level=5),
            _member("d", mining_level=4),
        ]
        ranked = get_team_bottleneck(team)
        assert (ranked[0].skill, ranked[0].level, ranked[0].type) == ("mining", 4, "gathering")
        assert len(ranked) == len(ALL_SKILLS)

    def test_rounds_half_up(self):
        ranked = get_team_bottleneck([_member("a", cooking_level=1), _member("b", cooking_level=2)])
        assert (ranked[0].skill, ranked[0].level) == ("cooking", 2)

    def test_combat_uses_character_level(self):
        ranked = get_team_bottleneck([_member("a", level=2)])
        assert (ranked[0].skill, ranked[0].type) == ("combat", "combat")

    def test_ties_keep_declaration_order(self):
        ranked = get_team_bottleneck([make_character()])
        assert [b.skill for b in ranked] == list(ALL_SKILLS)

    def test_empty_team(self):
        assert get_team_bottleneck([]) == []


class TestBuildStages:
    def test_combat_fights_strongest_monster(self, game_data: GameData):
        stages = build_pipeline_stages("combat", 8, [], game_data)
        assert _keys(stages) == ["fight:cow"]

    def test_combat_without_monsters(self):
        assert build_pipeline_stages("combat", 5, [], GameData()) == []

    def test_gathering_with_refine_recipe(self, game_data: GameData):
        stages = build_pipeline_stages("mining", 1, [], game_data)
        assert _keys(stages) == ["gather:copper_rocks", "craft:copper_bar"]
        assert all(s.skill == "mining" for s in stages)

    def test_gathering_stocked_skips_gather(self, game_data: GameData):
        stages = build_pipeline_stages("mining", 1, bank(copper_ore=50), game_data)
        assert _keys(stages) == ["craft:copper_bar"]

    def test_gathering_without_recipes(self, game_data: GameData):
        assert _keys(build_pipeline_stages("alchemy", 1, [], game_data)) == [
            "gather:sunflower_field"
        ]

    def test_gathering_respects_level(self, game_data: GameData):
        assert build_pipeline_stages("fishing", 0, [], game_data) == []

    def test_crafting_through_intermediate(self, game_data: GameData):
        stages = build_pipeline_stages("gearcrafting", 1, [], game_data)
        assert _keys(stages) == ["gather:copper_rocks", "craft:copper_bar"]
        assert stages[1].skill == "mining"

    def test_crafting_adds_final_craft_when_one_batch_banked(self, game_data: GameData):
        stages = build_pipeline_stages("gearcrafting", 1, bank(copper_bar=6), game_data)
        assert _keys(stages) == ["gather:copper_rocks", "craft:copper_bar", "craft:copper_helmet"]

    def test_crafting_stocked(self, game_data: GameData):
        stages = build_pipeline_stages("gearcrafting", 1, bank(copper_bar=30), game_data)
        assert _keys(stages) == ["craft:copper_helmet"]

    def test_crafting_monster_material(self):
        game_data = GameData()
        game_data.load(
            [make_map(0, 1, "monster", "chicken")],
            [],
            [make_monster("chicken", 1, ("feather",))],
            [make_item("quill", craft=("gearcrafting", 1, {"feather": 3}))],
        )
        stages = build_pipeline_stages("gearcrafting", 1, [], game_data)
        assert stages == [PipelineStage(type=StageType.FIGHT, skill="combat", monster="chicken")]

    def test_crafting_without_recipes(self, game_data: GameData):
        assert build_pipeline_stages("jewelrycrafting", 0, [], game_data) == []


class TestAssignment:
    _stages = [
        PipelineStage(type=StageType.GATHER, skill="mining", resource="copper_rocks"),
        PipelineStage(type=StageType.FIGHT, skill="combat", monster="chicken"),
    ]

    def test_lowest_skill_wins(self):
        state = make_character(level=6, mining_level=5)
        goal = assign_character_to_stage("alice", state, self._stages, {})
        assert goal == Gather(resource="copper_rocks")

    def test_crowded_stage_penalized(self):
        state = make_character(level=6, mining_level=5)
        goal = assign_character_to_stage(
            "alice", state, self._stages, {"bob": "gather:copper_rocks"}
        )
        assert goal == Fight(monster="chicken")

    def test_own_assignment_not_counted(self):
        state = make_character(level=6, mining_level=5)
        goal = assign_character_to_stage(
            "alice", state, self._stages, {"alice": "gather:copper_rocks"}
        )
        assert goal == Gather(resource="copper_rocks")

    def test_previous_stage_discounted(self):
        state = make_character(level=6, mining_level=5)
        goal = assign_character_to_stage(
            "alice", state, self._stages, {}, previous_assignment="fight:chicken"
        )
        assert goal == Fight(monster="chicken")

    def test_tie_keeps_first_stage(self):
        stages = [
            PipelineStage(type=StageType.GATHER, skill="mining", resource="copper_rocks"),
            PipelineStage(type=StageType.CRAFT, skill="mining", item="copper_bar"),
        ]
        goal = assign_character_to_stage("alice", make_character(), stages, {})
        assert goal == Gather(resource="copper_rocks")

    def test_craft_stage_goal(self):
        stages = [PipelineStage(type=StageType.CRAFT, skill="mining", item="copper_bar")]
        assert assign_character_to_stage("alice", make_character(), stages, {}) == Craft(
            item="copper_bar", quantity=1
        )

    def test_no_stages(self):
        goal = assign_character_to_stage("alice", make_character(), [], {})
        assert goal.kind == GoalKind.IDLE
