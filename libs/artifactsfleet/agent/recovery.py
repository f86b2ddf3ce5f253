"""Classification of game API errors into recovery outcomes."""

from enum import Enum

from artifactsfleet.client.errors import ErrorCode
from artifactsfleet.models.character import CharacterState
from artifactsfleet.models.goals import DepositAll, Goal, TaskComplete, TaskNew, TaskTrade


class Recovery(Enum):
    """Outcomes that are not a concrete recovery goal."""

    SKIP = "skip"  # abandon the goal this tick, re-plan next tick
    UNKNOWN = "unknown"  # keep the goal, count the failure toward stuck detection


SKIP_CODES: frozenset[int] = frozenset(
    {
        ErrorCode.TASK_NOT_COMPLETED,
        ErrorCode.ALREADY_HAS_TASK,
        ErrorCode.ALREADY_AT_DESTINATION,
        ErrorCode.ITEM_ALREADY_EQUIPPED,
        ErrorCode.SLOT_NOT_EMPTY,
        ErrorCode.ACTION_IN_PROGRESS,
        ErrorCode.COOLDOWN,
        ErrorCode.TRANSACTION_IN_PROGRESS,
        ErrorCode.GE_TRANSACTION_IN_PROGRESS,
        ErrorCode.ORDER_NOT_FOUND,
        ErrorCode.OWN_ORDER,
        ErrorCode.CONTENT_NOT_ON_MAP,
    }
)


def get_error_recovery(code: int, state: CharacterState, goal: Goal) -> Goal | Recovery:
    """Map an API error code to a recovery goal, SKIP or UNKNOWN."""
    if code == ErrorCode.INVENTORY_FULL:
        return DepositAll()
    if code == ErrorCode.TASK_ALREADY_RESOLVED:
        return TaskComplete()
    if code == ErrorCode.NO_TASK:
        return TaskNew()
    if code in SKIP_CODES:
        return Recovery.SKIP
    if code == ErrorCode.MISSING_ITEM and isinstance(goal, TaskTrade):
        # Nothing left to hand in; the next tick re-plans from fresh state
        return Recovery.SKIP
    return Recovery.UNKNOWN
