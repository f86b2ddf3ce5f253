"""Overrides that pre-empt the coordinator or strategy — pure functions, no I/O.

Priority each tick:
1. REST when HP is below 40%
2. TASK_COMPLETE / TASK_TRADE when the task can be turned in
3. DEPOSIT_ALL when the inventory is nearly full
4. TASK_NEW / TASK_CANCEL when there is no task or it cannot be done
"""

from typing import TYPE_CHECKING

from artifactsfleet.models.character import CharacterState
from artifactsfleet.models.goals import (
    DepositAll,
    Goal,
    Rest,
    TaskCancel,
    TaskComplete,
    TaskNew,
    TaskTrade,
)

if TYPE_CHECKING:
    from artifactsfleet.world.game_data import GameData

SURVIVAL_HP_RATIO = 0.4

# Deposit when within this many items of capacity, or at this many used slots
DEPOSIT_MARGIN = 5
MAX_USED_SLOTS = 20

# Trade a partial batch once the inventory is this full
TASK_TRADE_FULL_RATIO = 0.95

TASKS_COIN = "tasks_coin"


def check_survival_override(state: CharacterState) -> Goal | None:
    if state.hp < state.max_hp * SURVIVAL_HP_RATIO:
        return Rest()
    return None


def check_task_override(state: CharacterState, game_data: "GameData | None" = None) -> Goal | None:
    """Task management goal, if the task state calls for one."""
    if not state.has_task():
        return TaskNew()

    if state.task_progress >= state.task_total:
        return TaskComplete()

    if state.task_type == "items":
        held = state.inventory_count(state.task)
        if held > 0:
            capacity = state.inventory_max_items * TASK_TRADE_FULL_RATIO
            nearly_full = state.total_quantity() >= capacity
            if held >= state.task_remaining() or nearly_full:
                return TaskTrade()

    if (
        game_data is not None
        and state.inventory_count(TASKS_COIN) >= 1
        and not game_data.is_task_achievable(state)
    ):
        return TaskCancel()

    return None


def check_inventory_override(state: CharacterState) -> Goal | None:
    if (
        state.total_quantity() >= state.inventory_max_items - DEPOSIT_MARGIN
        or state.used_slots() >= MAX_USED_SLOTS
    ):
        return DepositAll()
    return None


def select_override(
    state: CharacterState, game_data: "GameData | None" = None
) -> tuple[Goal, str] | None:
    """The highest-priority override for this tick with its reason, if any."""
    survival = check_survival_override(state)
    if survival is not None:
        return survival, "survival override: rest"

    task = check_task_override(state, game_data)
    if isinstance(task, (TaskComplete, TaskTrade)):
        return task, f"task override: {task.kind}"

    deposit = check_inventory_override(state)
    if deposit is not None:
        return deposit, "inventory override: deposit_all"

    if task is not None:
        return task, f"task override: {task.kind}"
    return None
