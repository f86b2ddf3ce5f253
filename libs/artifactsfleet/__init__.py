"""Artifacts Fleet — shared library for the character agents and fleet services."""

from artifactsfleet.agent import (
    FleetAgent,
    GoalSource,
    Recovery,
    Strategy,
    activity_type,
    check_inventory_override,
    check_survival_override,
    check_task_override,
    get_error_recovery,
    select_override,
)
from artifactsfleet.board import BankBoardState, Board, BoardSnapshot, CharacterBoardState
from artifactsfleet.client.api_client import GameApiClient, fetch_all_pages
from artifactsfleet.client.errors import ApiRequestError, ErrorCode
from artifactsfleet.client.nats_client import FleetBusClient
from artifactsfleet.equipment import EquipmentChange, get_equipment_changes, score_item, should_swap
from artifactsfleet.helpers import DecisionLogger, JsonLinesFormatter, create_record, parse_record
from artifactsfleet.models import (
    ALL_SKILLS,
    COMBAT,
    CRAFTING_SKILLS,
    GATHERING_SKILLS,
    BuyGe,
    BuyNpc,
    CharacterState,
    Craft,
    DepositAll,
    Envelope,
    Equip,
    Fight,
    Gather,
    GameMap,
    GEOrder,
    Goal,
    GoalKind,
    Idle,
    InventorySlot,
    Item,
    Monster,
    Move,
    NpcItem,
    RecordType,
    Resource,
    Rest,
    SellGe,
    SimpleItem,
    TaskCancel,
    TaskComplete,
    TaskDefinition,
    TaskNew,
    TaskTrade,
    Topics,
    Unequip,
    goal_identity,
    goal_to_dict,
    stage_key,
    target_key,
)
from artifactsfleet.world import GameData, bank_quantities

__all__ = [
    # Clients
    "ApiRequestError",
    "ErrorCode",
    "FleetBusClient",
    "GameApiClient",
    "fetch_all_pages",
    # Agent
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
    # Shared state and world knowledge
    "BankBoardState",
    "Board",
    "BoardSnapshot",
    "CharacterBoardState",
    "GameData",
    "bank_quantities",
    # Equipment
    "EquipmentChange",
    "get_equipment_changes",
    "score_item",
    "should_swap",
    # Helpers
    "DecisionLogger",
    "JsonLinesFormatter",
    "create_record",
    "parse_record",
    # Models
    "ALL_SKILLS",
    "COMBAT",
    "CRAFTING_SKILLS",
    "GATHERING_SKILLS",
    "BuyGe",
    "BuyNpc",
    "CharacterState",
    "Craft",
    "DepositAll",
    "Envelope",
    "Equip",
    "Fight",
    "GEOrder",
    "GameMap",
    "Gather",
    "Goal",
    "GoalKind",
    "Idle",
    "InventorySlot",
    "Item",
    "Monster",
    "Move",
    "NpcItem",
    "RecordType",
    "Resource",
    "Rest",
    "SellGe",
    "SimpleItem",
    "TaskCancel",
    "TaskComplete",
    "TaskDefinition",
    "TaskNew",
    "TaskTrade",
    "Topics",
    "Unequip",
    "goal_identity",
    "goal_to_dict",
    "stage_key",
    "target_key",
]
