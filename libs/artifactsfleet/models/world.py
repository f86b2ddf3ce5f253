"""Static world data — maps, resources, monsters, items, NPC listings, tasks."""

from pydantic import BaseModel, Field

EQUIPMENT_TYPES: frozenset[str] = frozenset(
    {
        "weapon",
        "shield",
        "helmet",
        "body_armor",
        "leg_armor",
        "boots",
        "ring",
        "amulet",
        "artifact",
        "rune",
        "bag",
    }
)


class SimpleItem(BaseModel):
    """A code/quantity pair, used for bank contents and payloads."""

    code: str
    quantity: int = Field(ge=0)


class MapContent(BaseModel):
    type: str  # monster, resource, workshop, bank, grand_exchange, tasks_master, npc
    code: str


class MapInteractions(BaseModel):
    content: MapContent | None = None


class GameMap(BaseModel):
    model_config = {"extra": "ignore"}

    map_id: int = 0
    name: str = ""
    x: int
    y: int
    layer: str = "overworld"
    interactions: MapInteractions = Field(default_factory=MapInteractions)

    @property
    def content(self) -> MapContent | None:
        return self.interactions.content


class DropRate(BaseModel):
    code: str
    rate: int = 1
    min_quantity: int = 1
    max_quantity: int = 1


class Resource(BaseModel):
    model_config = {"extra": "ignore"}

    name: str = ""
    code: str
    skill: str
    level: int = 1
    drops: list[DropRate] = Field(default_factory=list)


class Monster(BaseModel):
    model_config = {"extra": "ignore"}

    name: str = ""
    code: str
    level: int = 1
    type: str = "normal"  # normal, elite, boss
    hp: int = 0
    drops: list[DropRate] = Field(default_factory=list)


class Effect(BaseModel):
    code: str
    value: int = 0
    description: str = ""


class CraftInfo(BaseModel):
    skill: str | None = None
    level: int | None = None
    items: list[SimpleItem] = Field(default_factory=list)
    quantity: int = 1


class Item(BaseModel):
    model_config = {"extra": "ignore"}

    name: str = ""
    code: str
    level: int = 1
    type: str = "resource"
    subtype: str = ""
    effects: list[Effect] = Field(default_factory=list)
    craft: CraftInfo | None = None
    tradeable: bool = True

    @property
    def is_equipment(self) -> bool:
        return self.type in EQUIPMENT_TYPES

    @property
    def craft_level(self) -> int:
        if self.craft is None or self.craft.level is None:
            return 0
        return self.craft.level


class NpcItem(BaseModel):
    """An item an NPC sells (and/or buys) for a currency."""

    model_config = {"extra": "ignore"}

    code: str
    npc: str
    currency: str = "gold"
    buy_price: int | None = None
    sell_price: int | None = None


class GEOrder(BaseModel):
    """A live sell order on the grand exchange."""

    model_config = {"extra": "ignore"}

    id: str
    seller: str = ""
    code: str
    quantity: int = 0
    price: int = 0
    type: str = "sell"


class TaskDefinition(BaseModel):
    model_config = {"extra": "ignore"}

    code: str
    type: str  # monsters, items
    level: int = 1
    skill: str | None = None
