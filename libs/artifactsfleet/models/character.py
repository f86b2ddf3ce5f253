"""CharacterState — the authoritative snapshot of one game character."""

from pydantic import BaseModel, Field

GATHERING_SKILLS: tuple[str, ...] = ("mining", "woodcutting", "fishing", "alchemy")
CRAFTING_SKILLS: tuple[str, ...] = (
    "weaponcrafting",
    "gearcrafting",
    "jewelrycrafting",
    "cooking",
)
COMBAT = "combat"

# Declaration order matters: bottleneck ties keep this order.
ALL_SKILLS: tuple[str, ...] = GATHERING_SKILLS + CRAFTING_SKILLS + (COMBAT,)

EQUIPMENT_SLOTS: tuple[str, ...] = (
    "weapon",
    "shield",
    "helmet",
    "body_armor",
    "leg_armor",
    "boots",
    "ring1",
    "ring2",
    "amulet",
    "artifact1",
    "artifact2",
    "artifact3",
    "utility1",
    "utility2",
    "bag",
    "rune",
)


def skill_type(skill: str) -> str:
    """Return `gathering`, `crafting` or `combat` for a skill name."""
    if skill in GATHERING_SKILLS:
        return "gathering"
    if skill in CRAFTING_SKILLS:
        return "crafting"
    return "combat"


class InventorySlot(BaseModel):
    slot: int = 0
    code: str = ""
    quantity: int = 0


class CharacterState(BaseModel):
    """Character payload as returned by the game API.

    Unknown fields are ignored so the model survives API additions.
    """

    model_config = {"extra": "ignore"}

    name: str
    level: int = 1
    xp: int = 0
    gold: int = 0
    hp: int = 100
    max_hp: int = 100
    x: int = 0
    y: int = 0
    layer: str = "overworld"

    mining_level: int = 1
    woodcutting_level: int = 1
    fishing_level: int = 1
    alchemy_level: int = 1
    weaponcrafting_level: int = 1
    gearcrafting_level: int = 1
    jewelrycrafting_level: int = 1
    cooking_level: int = 1

    weapon_slot: str = ""
    shield_slot: str = ""
    helmet_slot: str = ""
    body_armor_slot: str = ""
    leg_armor_slot: str = ""
    boots_slot: str = ""
    ring1_slot: str = ""
    ring2_slot: str = ""
    amulet_slot: str = ""
    artifact1_slot: str = ""
    artifact2_slot: str = ""
    artifact3_slot: str = ""
    utility1_slot: str = ""
    utility1_slot_quantity: int = 0
    utility2_slot: str = ""
    utility2_slot_quantity: int = 0
    bag_slot: str = ""
    rune_slot: str = ""

    task: str = ""
    task_type: str = ""
    task_progress: int = 0
    task_total: int = 0

    cooldown_expiration: str | None = None
    inventory_max_items: int = 100
    inventory: list[InventorySlot] = Field(default_factory=list)

    # --- Skills ---

    def skill_level(self, skill: str) -> int:
        """Level of a skill; `combat` maps to the character level."""
        if skill == COMBAT:
            return self.level
        return getattr(self, f"{skill}_level", 1)

    def skill_levels(self) -> dict[str, int]:
        return {skill: self.skill_level(skill) for skill in ALL_SKILLS}

    # --- Equipment ---

    def equipped(self, slot: str) -> str:
        """Item code in an equipment slot, or an empty string."""
        return getattr(self, f"{slot}_slot", "") or ""

    # --- Inventory ---

    def inventory_count(self, code: str) -> int:
        """Quantity of `code` across all inventory slots."""
        return sum(s.quantity for s in self.inventory if s.code == code)

    def total_quantity(self) -> int:
        return sum(s.quantity for s in self.inventory)

    def used_slots(self) -> int:
        return sum(1 for s in self.inventory if s.quantity > 0)

    def free_inventory(self) -> int:
        return max(0, self.inventory_max_items - self.total_quantity())

    def held_items(self) -> list[tuple[str, int]]:
        """Non-empty inventory slots as (code, quantity) pairs."""
        return [(s.code, s.quantity) for s in self.inventory if s.code and s.quantity > 0]

    # --- Task ---

    def has_task(self) -> bool:
        return bool(self.task) and bool(self.task_type)

    def task_remaining(self) -> int:
        return max(0, self.task_total - self.task_progress)
