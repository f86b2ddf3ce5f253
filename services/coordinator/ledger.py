"""Reservation ledger — per-agent claims against shared bank stock.

Pure in-memory bookkeeping, no I/O. One reservation per agent; a new one
replaces the old. Reservations older than the timeout are void.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from artifactsfleet import SimpleItem

DEFAULT_TIMEOUT = 300.0  # seconds


@dataclass
class Reservation:
    items: list[SimpleItem] = field(default_factory=list)
    created_at: float = 0.0


class ReservationLedger:
    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout = timeout
        self._clock = clock
        self._reservations: dict[str, Reservation] = {}

    def __len__(self) -> int:
        return len(self._reservations)

    def reserve(self, agent: str, items: list[SimpleItem]) -> None:
        """Claim `items` for `agent`, replacing any earlier claim."""
        self._reservations[agent] = Reservation(
            items=[i.model_copy() for i in items],
            created_at=self._clock(),
        )

    def reserved_for(self, agent: str) -> list[SimpleItem]:
        reservation = self._reservations.get(agent)
        if reservation is None:
            return []
        return [i.model_copy() for i in reservation.items]

    def get_available(self, bank_items: list[SimpleItem]) -> list[SimpleItem]:
        """Bank quantities minus live reservations, floored at zero.

        Every bank code is kept, reserved or not, in bank order.
        """
        now = self._clock()
        reserved: dict[str, int] = {}
        for reservation in self._reservations.values():
            if now - reservation.created_at >= self._timeout:
                continue
            for item in reservation.items:
                reserved[item.code] = reserved.get(item.code, 0) + item.quantity

        return [
            SimpleItem(code=i.code, quantity=max(0, i.quantity - reserved.get(i.code, 0)))
            for i in bank_items
        ]

    def clear(self, agent: str) -> None:
        self._reservations.pop(agent, None)

    def expire_stale(self) -> None:
        """Drop reservations older than the timeout."""
        now = self._clock()
        stale = [
            agent
            for agent, reservation in self._reservations.items()
            if now - reservation.created_at >= self._timeout
        ]
        for agent in stale:
            del self._reservations[agent]
