"""Game API error types and the numeric error codes the agents classify."""

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Game API error codes with a known meaning for recovery."""

    NOT_FOUND = 404
    ORDER_NOT_FOUND = 434
    OWN_ORDER = 435
    GE_TRANSACTION_IN_PROGRESS = 436
    TRANSACTION_IN_PROGRESS = 461
    TASK_ALREADY_RESOLVED = 475
    MISSING_ITEM = 478
    INSUFFICIENT_GOLD_BANK = 483
    ITEM_ALREADY_EQUIPPED = 485
    ACTION_IN_PROGRESS = 486
    NO_TASK = 487
    TASK_NOT_COMPLETED = 488
    ALREADY_HAS_TASK = 489
    ALREADY_AT_DESTINATION = 490
    SLOT_NOT_EMPTY = 491
    INSUFFICIENT_GOLD = 492
    SKILL_TOO_LOW = 493
    CONDITIONS_NOT_MET = 496
    INVENTORY_FULL = 497
    CHARACTER_NOT_FOUND = 498
    COOLDOWN = 499
    CONTENT_NOT_ON_MAP = 598


class ApiRequestError(Exception):
    """Raised for any non-2xx response once internal retries are exhausted."""

    def __init__(
        self,
        status_code: int,
        error_code: int,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"API error {error_code}: {message}")
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.data = data or {}
