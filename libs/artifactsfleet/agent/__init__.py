from artifactsfleet.agent.base import FleetAgent, GoalSource, Strategy, activity_type
from artifactsfleet.agent.overrides import (
    check_inventory_override,
    check_survival_override,
    check_task_override,
    select_override,
)
from artifactsfleet.agent.recovery import Recovery, get_error_recovery

__all__ = [
    "FleetAgent",
    "GoalSource",
    "Recovery",
    "Strategy",
    "activity_type",
    "check_inventory_override",
    "check_survival_override",
    "check_task_override",
    "get_error_recovery",
    "select_override",
]
