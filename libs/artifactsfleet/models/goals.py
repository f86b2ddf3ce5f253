"""Goal model — the closed set of things an agent can decide to do in one tick.

Each variant is a frozen dataclass tagged with a GoalKind. Consumers dispatch
with a single `match` statement over the variant classes.
"""

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar


class GoalKind(StrEnum):
    """All goal types a strategy or the coordinator can emit."""

    GATHER = "gather"
    FIGHT = "fight"
    CRAFT = "craft"
    REST = "rest"
    DEPOSIT_ALL = "deposit_all"
    MOVE = "move"
    EQUIP = "equip"
    UNEQUIP = "unequip"
    BUY_NPC = "buy_npc"
    BUY_GE = "buy_ge"
    SELL_GE = "sell_ge"
    TASK_NEW = "task_new"
    TASK_COMPLETE = "task_complete"
    TASK_TRADE = "task_trade"
    TASK_CANCEL = "task_cancel"
    IDLE = "idle"


@dataclass(frozen=True)
class Gather:
    resource: str
    kind: ClassVar[GoalKind] = GoalKind.GATHER


@dataclass(frozen=True)
class Fight:
    monster: str
    party: tuple[str, ...] | None = None
    kind: ClassVar[GoalKind] = GoalKind.FIGHT

    @property
    def is_party(self) -> bool:
        return bool(self.party)


@dataclass(frozen=True)
class Craft:
    item: str
    quantity: int = 1
    kind: ClassVar[GoalKind] = GoalKind.CRAFT


@dataclass(frozen=True)
class Rest:
    kind: ClassVar[GoalKind] = GoalKind.REST


@dataclass(frozen=True)
class DepositAll:
    kind: ClassVar[GoalKind] = GoalKind.DEPOSIT_ALL


@dataclass(frozen=True)
class Move:
    x: int
    y: int
    kind: ClassVar[GoalKind] = GoalKind.MOVE


@dataclass(frozen=True)
class Equip:
    code: str
    slot: str
    kind: ClassVar[GoalKind] = GoalKind.EQUIP


@dataclass(frozen=True)
class Unequip:
    slot: str
    kind: ClassVar[GoalKind] = GoalKind.UNEQUIP


@dataclass(frozen=True)
class BuyNpc:
    npc: str
    item: str
    quantity: int = 1
    kind: ClassVar[GoalKind] = GoalKind.BUY_NPC


@dataclass(frozen=True)
class BuyGe:
    item: str
    max_price: int
    quantity: int = 1
    kind: ClassVar[GoalKind] = GoalKind.BUY_GE


@dataclass(frozen=True)
class SellGe:
    item: str
    quantity: int
    price: int
    kind: ClassVar[GoalKind] = GoalKind.SELL_GE


@dataclass(frozen=True)
class TaskNew:
    kind: ClassVar[GoalKind] = GoalKind.TASK_NEW


@dataclass(frozen=True)
class TaskComplete:
    kind: ClassVar[GoalKind] = GoalKind.TASK_COMPLETE


@dataclass(frozen=True)
class TaskTrade:
    kind: ClassVar[GoalKind] = GoalKind.TASK_TRADE


@dataclass(frozen=True)
class TaskCancel:
    kind: ClassVar[GoalKind] = GoalKind.TASK_CANCEL


@dataclass(frozen=True)
class Idle:
    reason: str = field(default="")
    kind: ClassVar[GoalKind] = GoalKind.IDLE


Goal = (
    Gather
    | Fight
    | Craft
    | Rest
    | DepositAll
    | Move
    | Equip
    | Unequip
    | BuyNpc
    | BuyGe
    | SellGe
    | TaskNew
    | TaskComplete
    | TaskTrade
    | TaskCancel
    | Idle
)


def goal_to_dict(goal: Goal) -> dict[str, Any]:
    """Flatten a goal into a JSON-friendly dict with a `type` tag."""
    data: dict[str, Any] = {"type": goal.kind.value}
    for name, value in goal.__dict__.items():
        if value is None:
            continue
        data[name] = list(value) if isinstance(value, tuple) else value
    return data


def goal_identity(goal: Goal) -> str:
    """Canonical JSON identity of a goal, used to recognise repeated failures."""
    return json.dumps(goal_to_dict(goal), sort_keys=True)


def target_key(goal: Goal) -> str | None:
    """Key of the shared world target a goal contends for (anti-duplication)."""
    match goal:
        case Gather(resource=resource):
            return f"gather:{resource}"
        case Fight(monster=monster):
            return f"fight:{monster}"
        case _:
            return None


def stage_key(goal: Goal) -> str | None:
    """Key of the pipeline stage a goal corresponds to (anti-thrash)."""
    match goal:
        case Gather(resource=resource):
            return f"gather:{resource}"
        case Craft(item=item):
            return f"craft:{item}"
        case Fight(monster=monster):
            return f"fight:{monster}"
        case _:
            return None
