"""Equipment advisor — which slots to swap before pursuing an activity."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from artifactsfleet.equipment.evaluator import (
    SLOT_ITEM_TYPES,
    ActivityType,
    score_item,
    should_swap,
)
from artifactsfleet.models.character import CharacterState
from artifactsfleet.models.world import Item, SimpleItem

if TYPE_CHECKING:
    from artifactsfleet.world.game_data import GameData


@dataclass
class EquipmentChange:
    slot: str
    unequip_code: str | None
    equip_code: str
    score_diff: float


def get_equipment_changes(
    character: CharacterState,
    bank_items: list[SimpleItem],
    game_data: "GameData",
    activity: ActivityType,
) -> list[EquipmentChange]:
    """Best bank item per slot that clears the swap threshold, biggest gain first.

    Only items at or below the character's level are candidates. Slots that
    share an item type (rings, artifacts) never claim the same bank unit twice.
    """
    changes: list[EquipmentChange] = []
    stock: dict[str, int] = {}
    for bank_item in bank_items:
        stock[bank_item.code] = stock.get(bank_item.code, 0) + bank_item.quantity

    for slot, item_type in SLOT_ITEM_TYPES.items():
        current_code = character.equipped(slot)
        current = game_data.get_item(current_code) if current_code else None

        best: Item | None = None
        best_score = -1.0
        for code, quantity in stock.items():
            if quantity <= 0:
                continue
            item = game_data.get_item(code)
            if item is None or item.type != item_type or item.level > character.level:
                continue
            score = score_item(item, activity)
            if score > best_score:
                best_score = score
                best = item

        if best is None:
            continue

        decision = should_swap(current, best, activity)
        if decision.swap:
            stock[best.code] -= 1
            changes.append(
                EquipmentChange(
                    slot=slot,
                    unequip_code=current_code or None,
                    equip_code=best.code,
                    score_diff=decision.score_diff,
                )
            )

    changes.sort(key=lambda c: c.score_diff, reverse=True)
    return changes
