"""Board — the shared, latest-state projection every agent writes and reads.

Writers overwrite; readers always receive deep copies, so nothing handed out
can mutate the live board.
"""

import copy
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any

from artifactsfleet.models.world import GEOrder, SimpleItem


@dataclass
class CharacterBoardState:
    """What other agents may know about one character."""

    current_action: str = "evaluating"
    target: str = ""
    position: tuple[int, int] = (0, 0)
    skill_levels: dict[str, int] = field(default_factory=dict)
    inventory_used: int = 0
    inventory_max: int = 100


@dataclass
class BankBoardState:
    items: list[SimpleItem] = field(default_factory=list)
    gold: int = 0
    last_updated: float = 0.0

    def quantity(self, code: str) -> int:
        return sum(i.quantity for i in self.items if i.code == code)


@dataclass
class BoardSnapshot:
    characters: dict[str, CharacterBoardState] = field(default_factory=dict)
    bank: BankBoardState = field(default_factory=BankBoardState)
    ge_orders: list[GEOrder] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view, used in decision records."""
        return {
            "characters": {name: asdict(c) for name, c in self.characters.items()},
            "bank": {
                "items": [i.model_dump() for i in self.bank.items],
                "gold": self.bank.gold,
                "last_updated": self.bank.last_updated,
            },
            "ge_orders": [o.model_dump() for o in self.ge_orders],
        }


class Board:
    """Thread-safe shared state for the whole fleet."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._characters: dict[str, CharacterBoardState] = {}
        self._bank = BankBoardState()
        self._ge_orders: list[GEOrder] = []

    def update_character(self, name: str, state: CharacterBoardState) -> None:
        with self._lock:
            self._characters[name] = copy.deepcopy(state)

    def update_bank(self, items: list[SimpleItem], gold: int) -> None:
        """Replace the bank view and stamp it with the current time."""
        with self._lock:
            self._bank = BankBoardState(
                items=[i.model_copy() for i in items],
                gold=gold,
                last_updated=time.time(),
            )

    def update_ge_orders(self, orders: list[GEOrder]) -> None:
        with self._lock:
            self._ge_orders = [o.model_copy() for o in orders]

    def get_snapshot(self) -> BoardSnapshot:
        with self._lock:
            return BoardSnapshot(
                characters=copy.deepcopy(self._characters),
                bank=copy.deepcopy(self._bank),
                ge_orders=copy.deepcopy(self._ge_orders),
            )

    def get_other_characters(self, exclude: str) -> dict[str, CharacterBoardState]:
        with self._lock:
            return {
                name: copy.deepcopy(state)
                for name, state in self._characters.items()
                if name != exclude
            }
