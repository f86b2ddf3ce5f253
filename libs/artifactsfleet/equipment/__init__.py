from artifactsfleet.equipment.evaluator import (
    COMBAT_ACTIVITY,
    ActivityType,
    SwapDecision,
    gathering_activity,
    score_item,
    should_swap,
)
from artifactsfleet.equipment.manager import EquipmentChange, get_equipment_changes

__all__ = [
    "COMBAT_ACTIVITY",
    "ActivityType",
    "EquipmentChange",
    "SwapDecision",
    "gathering_activity",
    "get_equipment_changes",
    "score_item",
    "should_swap",
]
