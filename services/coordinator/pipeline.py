"""Bottleneck detection and production pipeline construction — pure functions.

The team's weakest skill (lowest rounded average level) is trained through
an ordered list of stages: gather -> refine -> craft, or fight for combat.
"""

import math
from dataclasses import dataclass
from enum import StrEnum

from artifactsfleet import (
    ALL_SKILLS,
    COMBAT,
    GATHERING_SKILLS,
    CharacterState,
    Craft,
    Fight,
    GameData,
    Gather,
    Goal,
    Idle,
    SimpleItem,
    bank_quantities,
)
from artifactsfleet.models.character import skill_type

# Bank holds enough of a material when it covers this many crafts
STOCK_MULTIPLIER = 5

# Each other agent already on a stage adds this to its score
ASSIGNED_PENALTY = 3

# Staying on the previous stage scales its score by this
ANTI_THRASH_FACTOR = 0.7


class StageType(StrEnum):
    GATHER = "gather"
    CRAFT = "craft"
    FIGHT = "fight"


@dataclass
class SkillBottleneck:
    skill: str
    level: int  # team average, rounded
    type: str  # gathering, crafting, combat


@dataclass(frozen=True)
class PipelineStage:
    type: StageType
    skill: str
    resource: str | None = None
    item: str | None = None
    quantity: int = 1
    monster: str | None = None


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def get_team_bottleneck(characters: list[CharacterState]) -> list[SkillBottleneck]:
    """All nine skills ranked by team average level, lowest first.

    The sort is stable, so ties keep skill declaration order.
    """
    if not characters:
        return []
    ranked = [
        SkillBottleneck(
            skill=skill,
            level=_round_half_up(sum(c.skill_level(skill) for c in characters) / len(characters)),
            type=skill_type(skill),
        )
        for skill in ALL_SKILLS
    ]
    ranked.sort(key=lambda b: b.level)
    return ranked


def pipeline_stage_key(stage: PipelineStage) -> str:
    match stage.type:
        case StageType.GATHER:
            return f"gather:{stage.resource}"
        case StageType.CRAFT:
            return f"craft:{stage.item}"
        case StageType.FIGHT:
            return f"fight:{stage.monster}"


def stage_to_goal(stage: PipelineStage) -> Goal:
    match stage.type:
        case StageType.GATHER:
            return Gather(resource=stage.resource or "")
        case StageType.CRAFT:
            return Craft(item=stage.item or "", quantity=stage.quantity)
        case StageType.FIGHT:
            return Fight(monster=stage.monster or "")


def _gather_stage(resource_code: str, skill: str) -> PipelineStage:
    return PipelineStage(type=StageType.GATHER, skill=skill, resource=resource_code)


def _craft_stage(item_code: str, skill: str) -> PipelineStage:
    return PipelineStage(type=StageType.CRAFT, skill=skill, item=item_code, quantity=1)


def _dedupe(stages: list[PipelineStage]) -> list[PipelineStage]:
    seen: set[str] = set()
    unique: list[PipelineStage] = []
    for stage in stages:
        key = pipeline_stage_key(stage)
        if key not in seen:
            seen.add(key)
            unique.append(stage)
    return unique


def build_pipeline_stages(
    target_skill: str,
    max_level: int,
    bank_items: list[SimpleItem],
    game_data: GameData,
) -> list[PipelineStage]:
    """Ordered, de-duplicated stages that train `target_skill` at `max_level`."""
    bank = bank_quantities(bank_items)

    if target_skill == COMBAT:
        monsters = sorted(
            game_data.get_monsters_by_level(max_level), key=lambda m: m.level, reverse=True
        )
        if not monsters:
            return []
        return [PipelineStage(type=StageType.FIGHT, skill=COMBAT, monster=monsters[0].code)]

    recipes = game_data.get_items_for_skill(target_skill, max_level)

    if target_skill in GATHERING_SKILLS:
        if not recipes:
            resources = sorted(
                (
                    r
                    for r in game_data.get_resources_for_skill(target_skill)
                    if r.level <= max_level
                ),
                key=lambda r: r.level,
                reverse=True,
            )
            return [_gather_stage(resources[0].code, target_skill)] if resources else []

        best = recipes[0]
        materials = best.craft.items if best.craft else []
        stocked = all(bank.get(m.code, 0) >= m.quantity * STOCK_MULTIPLIER for m in materials)
        stages: list[PipelineStage] = []
        if not stocked:
            for mat in materials:
                resource = game_data.find_resource_for_drop(mat.code)
                if resource is not None and resource.skill == target_skill:
                    if game_data.find_maps_with_resource(resource.code):
                        stages.append(_gather_stage(resource.code, target_skill))
        stages.append(_craft_stage(best.code, target_skill))
        return _dedupe(stages)

    # Crafting skill
    if not recipes:
        return []
    best = recipes[0]
    materials = best.craft.items if best.craft else []
    stages = []

    for mat in materials:
        if bank.get(mat.code, 0) >= mat.quantity * STOCK_MULTIPLIER:
            continue

        resource = game_data.find_resource_for_drop(mat.code)
        if resource is not None and game_data.find_maps_with_resource(resource.code):
            stages.append(_gather_stage(resource.code, resource.skill))
            continue

        intermediate = game_data.get_item(mat.code)
        if intermediate is not None and intermediate.craft is not None and intermediate.craft.items:
            for sub in intermediate.craft.items:
                sub_resource = game_data.find_resource_for_drop(sub.code)
                if sub_resource is None or not game_data.find_maps_with_resource(sub_resource.code):
                    continue
                if bank.get(sub.code, 0) < sub.quantity * STOCK_MULTIPLIER:
                    stages.append(_gather_stage(sub_resource.code, sub_resource.skill))
            stages.append(_craft_stage(mat.code, intermediate.craft.skill or target_skill))
            continue

        monster = game_data.find_monster_for_drop(mat.code)
        if monster is not None:
            stages.append(PipelineStage(type=StageType.FIGHT, skill=COMBAT, monster=monster.code))

    # Only worth crafting now if at least one material covers a full recipe
    if any(bank.get(m.code, 0) >= m.quantity for m in materials):
        stages.append(_craft_stage(best.code, target_skill))

    return _dedupe(stages)


def assign_character_to_stage(
    name: str,
    state: CharacterState,
    stages: list[PipelineStage],
    current_assignments: dict[str, str],
    previous_assignment: str | None = None,
) -> Goal:
    """Pick the stage with the lowest score for this character.

    score = skill level + 3 x (other agents on the stage), discounted 30%
    when it is the character's previous stage. First stage wins ties.
    """
    if not stages:
        return Idle(reason="no pipeline stages available")

    counts: dict[str, int] = {}
    for other, key in current_assignments.items():
        if other != name:
            counts[key] = counts.get(key, 0) + 1

    best: PipelineStage | None = None
    best_score = math.inf
    for stage in stages:
        key = pipeline_stage_key(stage)
        score: float = state.skill_level(stage.skill) + counts.get(key, 0) * ASSIGNED_PENALTY
        if key == previous_assignment:
            score *= ANTI_THRASH_FACTOR
        if score < best_score:
            best_score = score
            best = stage

    if best is None:
        return Idle(reason="no suitable pipeline stage")
    return stage_to_goal(best)
