"""GoalPlanner — lifecycle of the team's single active plan.

A plan targets the bottleneck skill, carries the material graph its best
recipe needs, and tracks banked and in-flight quantities of those materials.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from artifactsfleet import COMBAT, CharacterState, GameData, SimpleItem, bank_quantities

from services.coordinator.pipeline import (
    PipelineStage,
    build_pipeline_stages,
    get_team_bottleneck,
)

MAX_WALK_DEPTH = 10

# Inventory units of plan materials that send an agent to the bank
DEPOSIT_BATCH = 10


class MaterialSource(StrEnum):
    GATHER = "gather"
    CRAFT = "craft"
    MONSTER_DROP = "monster_drop"


class PlanStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass
class MaterialNeed:
    code: str
    quantity_needed: int
    source: MaterialSource
    source_code: str  # resource, recipe or monster code


@dataclass
class PlanProgress:
    banked: dict[str, int] = field(default_factory=dict)
    in_flight: dict[str, int] = field(default_factory=dict)
    crafted: int = 0


@dataclass
class ActivePlan:
    target_skill: str
    target_recipe: str
    material_needs: list[MaterialNeed] = field(default_factory=list)
    stages: list[PipelineStage] = field(default_factory=list)
    progress: PlanProgress = field(default_factory=PlanProgress)
    status: PlanStatus = PlanStatus.ACTIVE

    def needed_codes(self) -> set[str]:
        return {n.code for n in self.material_needs}

    def record_craft(self, item: str, quantity: int) -> None:
        """Count crafts of the plan's target recipe."""
        if item == self.target_recipe:
            self.progress.crafted += quantity


def team_max_skill_level(characters: list[CharacterState], skill: str) -> int:
    return max([1, *(c.skill_level(skill) for c in characters)])


def build_active_plan(
    target_skill: str,
    characters: list[CharacterState],
    bank_items: list[SimpleItem],
    game_data: GameData,
) -> ActivePlan | None:
    """Plan for training `target_skill`, or None when no recipe exists for it."""
    max_level = team_max_skill_level(characters, target_skill)

    if target_skill == COMBAT:
        stages = build_pipeline_stages(target_skill, max_level, bank_items, game_data)
        if not stages:
            return None
        return ActivePlan(
            target_skill=target_skill,
            target_recipe=stages[0].monster or "",
            stages=stages,
        )

    recipes = game_data.get_items_for_skill(target_skill, max_level)
    if not recipes:
        return None
    best = recipes[0]

    needs: list[MaterialNeed] = []
    visited: set[str] = set()

    def walk(materials: list[SimpleItem], depth: int) -> None:
        if depth > MAX_WALK_DEPTH:
            return
        for mat in materials:
            if mat.code in visited:
                continue
            visited.add(mat.code)

            resource = game_data.find_resource_for_drop(mat.code)
            if resource is not None:
                needs.append(
                    MaterialNeed(mat.code, mat.quantity, MaterialSource.GATHER, resource.code)
                )
                continue

            item = game_data.get_item(mat.code)
            if item is not None and item.craft is not None and item.craft.items:
                needs.append(MaterialNeed(mat.code, mat.quantity, MaterialSource.CRAFT, mat.code))
                walk(item.craft.items, depth + 1)
                continue

            monster = game_data.find_monster_for_drop(mat.code)
            if monster is not None:
                needs.append(
                    MaterialNeed(mat.code, mat.quantity, MaterialSource.MONSTER_DROP, monster.code)
                )

    walk(best.craft.items if best.craft else [], 0)

    return ActivePlan(
        target_skill=target_skill,
        target_recipe=best.code,
        material_needs=needs,
        stages=build_pipeline_stages(target_skill, max_level, bank_items, game_data),
    )


def update_plan_progress(
    plan: ActivePlan,
    bank_items: list[SimpleItem],
    character_states: Iterable[CharacterState],
) -> None:
    """Rebuild banked and in-flight quantities from scratch."""
    needed = plan.needed_codes()
    plan.progress.banked = {
        code: qty for code, qty in bank_quantities(bank_items).items() if code in needed
    }
    in_flight: dict[str, int] = {}
    for character in character_states:
        for slot in character.inventory:
            if slot.code in needed:
                in_flight[slot.code] = in_flight.get(slot.code, 0) + slot.quantity
    plan.progress.in_flight = in_flight


def should_complete_plan(plan: ActivePlan, current_characters: list[CharacterState]) -> bool:
    """True once the plan's skill is no longer tied for the team's lowest."""
    if not current_characters:
        return False
    ranking = get_team_bottleneck(current_characters)
    if not ranking:
        return False
    target = next((b for b in ranking if b.skill == plan.target_skill), None)
    if target is None:
        return True
    return target.level > ranking[0].level


def _craft_recipe_materials(plan: ActivePlan, craft_code: str) -> list[SimpleItem] | None:
    for need in plan.material_needs:
        if need.code == craft_code and need.source == MaterialSource.CRAFT:
            # Intermediates are fed by the plan's raw materials
            return [
                SimpleItem(code=n.code, quantity=n.quantity_needed)
                for n in plan.material_needs
                if n.source in (MaterialSource.GATHER, MaterialSource.MONSTER_DROP)
            ]
    if craft_code == plan.target_recipe:
        return [
            SimpleItem(code=n.code, quantity=n.quantity_needed)
            for n in plan.material_needs
            if n.code != craft_code
        ]
    return None


def should_deposit(
    plan: ActivePlan,
    agent_name: str,
    state: CharacterState,
    stage_assignments: dict[str, str],
    bank_items: list[SimpleItem],
) -> bool:
    """Whether the agent should bank what it carries for the plan.

    True at a batch of 10 plan materials, or when another agent's craft is
    starved of a material this agent is holding.
    """
    needed = plan.needed_codes()
    held: dict[str, int] = {}
    for slot in state.inventory:
        if slot.code in needed:
            held[slot.code] = held.get(slot.code, 0) + slot.quantity

    total = sum(held.values())
    if total == 0:
        return False
    if total >= DEPOSIT_BATCH:
        return True

    bank = bank_quantities(bank_items)
    for other, key in stage_assignments.items():
        if other == agent_name or not key.startswith("craft:"):
            continue
        materials = _craft_recipe_materials(plan, key.removeprefix("craft:"))
        if not materials:
            continue
        starved = any(bank.get(m.code, 0) < m.quantity for m in materials)
        if starved and any(held.get(m.code, 0) > 0 for m in materials):
            return True
    return False
