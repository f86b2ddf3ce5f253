from artifactsfleet.models.character import (
    ALL_SKILLS,
    COMBAT,
    CRAFTING_SKILLS,
    EQUIPMENT_SLOTS,
    GATHERING_SKILLS,
    CharacterState,
    InventorySlot,
    skill_type,
)
from artifactsfleet.models.envelope import Envelope, RecordType
from artifactsfleet.models.goals import (
    BuyGe,
    BuyNpc,
    Craft,
    DepositAll,
    Equip,
    Fight,
    Gather,
    Goal,
    GoalKind,
    Idle,
    Move,
    Rest,
    SellGe,
    TaskCancel,
    TaskComplete,
    TaskNew,
    TaskTrade,
    Unequip,
    goal_identity,
    goal_to_dict,
    stage_key,
    target_key,
)
from artifactsfleet.models.responses import (
    ActionResult,
    BankResult,
    Cooldown,
    FightResult,
    SimulationResponse,
)
from artifactsfleet.models.topics import Topics, from_nats_subject, to_nats_subject
from artifactsfleet.models.world import (
    CraftInfo,
    DropRate,
    Effect,
    GameMap,
    GEOrder,
    Item,
    MapContent,
    Monster,
    NpcItem,
    Resource,
    SimpleItem,
    TaskDefinition,
)

__all__ = [
    "ALL_SKILLS",
    "ActionResult",
    "BankResult",
    "BuyGe",
    "BuyNpc",
    "COMBAT",
    "CRAFTING_SKILLS",
    "CharacterState",
    "Cooldown",
    "Craft",
    "CraftInfo",
    "DepositAll",
    "DropRate",
    "EQUIPMENT_SLOTS",
    "Effect",
    "Envelope",
    "Equip",
    "Fight",
    "FightResult",
    "GATHERING_SKILLS",
    "GEOrder",
    "GameMap",
    "Gather",
    "Goal",
    "GoalKind",
    "Idle",
    "InventorySlot",
    "Item",
    "MapContent",
    "Monster",
    "Move",
    "NpcItem",
    "RecordType",
    "Resource",
    "Rest",
    "SellGe",
    "SimpleItem",
    "SimulationResponse",
    "TaskCancel",
    "TaskComplete",
    "TaskDefinition",
    "TaskNew",
    "TaskTrade",
    "Topics",
    "Unequip",
    "from_nats_subject",
    "goal_identity",
    "goal_to_dict",
    "skill_type",
    "stage_key",
    "target_key",
    "to_nats_subject",
]
