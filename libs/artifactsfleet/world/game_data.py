"""GameData — static world knowledge and the material-chain resolver.

Every query is synchronous and side-effect free; the data is loaded once at
startup from the paginated listing endpoints.
"""

import logging
from collections.abc import Iterable

from artifactsfleet.equipment.evaluator import SLOT_ITEM_TYPES, ActivityType, should_swap
from artifactsfleet.models.character import COMBAT, CharacterState
from artifactsfleet.models.goals import BuyGe, BuyNpc, Craft, Fight, Gather, Goal, SellGe
from artifactsfleet.models.world import (
    GameMap,
    GEOrder,
    Item,
    Monster,
    NpcItem,
    Resource,
    SimpleItem,
    TaskDefinition,
)

logger = logging.getLogger(__name__)

MAX_CHAIN_DEPTH = 10

# Bank surplus above which an item is listed on the grand exchange
GE_SELL_THRESHOLD = 100
GE_SELL_KEEP = 50


def bank_quantities(items: Iterable[SimpleItem]) -> dict[str, int]:
    """Collapse a bank listing into code -> quantity."""
    totals: dict[str, int] = {}
    for item in items:
        totals[item.code] = totals.get(item.code, 0) + item.quantity
    return totals


def _distance(m: GameMap, x: int, y: int) -> int:
    return abs(m.x - x) + abs(m.y - y)


class GameData:
    """In-memory index over maps, resources, monsters, items, NPC listings and tasks."""

    def __init__(self) -> None:
        self._maps: list[GameMap] = []
        self._resources: dict[str, Resource] = {}
        self._monsters: dict[str, Monster] = {}
        self._items: dict[str, Item] = {}
        self._npc_items: list[NpcItem] = []
        self._tasks: dict[str, TaskDefinition] = {}

    # --- Loading ---

    def load(
        self,
        maps: list[GameMap],
        resources: list[Resource],
        monsters: list[Monster],
        items: list[Item] | None = None,
    ) -> None:
        self._maps = list(maps)
        self._resources.update({r.code: r for r in resources})
        self._monsters.update({m.code: m for m in monsters})
        self._items.update({i.code: i for i in items or []})
        logger.debug(
            "Indexed %d maps, %d resources, %d monsters, %d items",
            len(self._maps),
            len(self._resources),
            len(self._monsters),
            len(self._items),
        )

    def load_npc_items(self, npc_items: list[NpcItem]) -> None:
        self._npc_items = list(npc_items)

    def load_tasks(self, tasks: list[TaskDefinition]) -> None:
        self._tasks = {t.code: t for t in tasks}

    # --- Maps ---

    def find_maps_with_resource(self, code: str) -> list[GameMap]:
        return self.find_maps_with_content("resource", code)

    def find_maps_with_monster(self, code: str) -> list[GameMap]:
        return self.find_maps_with_content("monster", code)

    def find_maps_with_content(self, content_type: str, code: str | None = None) -> list[GameMap]:
        return [
            m
            for m in self._maps
            if m.content is not None
            and m.content.type == content_type
            and (code is None or m.content.code == code)
        ]

    @staticmethod
    def find_nearest_map(x: int, y: int, maps: list[GameMap]) -> GameMap | None:
        """Closest map by Manhattan distance; the first one wins ties."""
        if not maps:
            return None
        return min(maps, key=lambda m: _distance(m, x, y))

    def find_nearest_bank(self, x: int, y: int) -> GameMap | None:
        return self.find_nearest_map(x, y, self.find_maps_with_content("bank"))

    def find_grand_exchange(self, x: int, y: int) -> GameMap | None:
        return self.find_nearest_map(x, y, self.find_maps_with_content("grand_exchange"))

    def find_workshop(self, skill: str, x: int = 0, y: int = 0) -> GameMap | None:
        """Nearest workshop for a crafting skill, or any workshop if none is tagged."""
        workshops = self.find_maps_with_content("workshop", skill)
        if not workshops:
            workshops = self.find_maps_with_content("workshop")
        return self.find_nearest_map(x, y, workshops)

    def find_tasks_master(self, task_type: str = "", x: int = 0, y: int = 0) -> GameMap | None:
        masters = self.find_maps_with_content("tasks_master", task_type) if task_type else []
        if not masters:
            masters = self.find_maps_with_content("tasks_master")
        return self.find_nearest_map(x, y, masters)

    def find_npc_map(self, npc: str) -> GameMap | None:
        maps = self.find_maps_with_content("npc", npc)
        return maps[0] if maps else None

    # --- Lookups ---

    def get_resource(self, code: str) -> Resource | None:
        return self._resources.get(code)

    def get_monster(self, code: str) -> Monster | None:
        return self._monsters.get(code)

    def get_item(self, code: str) -> Item | None:
        return self._items.get(code)

    def get_task(self, code: str) -> TaskDefinition | None:
        return self._tasks.get(code)

    def get_resources_for_skill(self, skill: str) -> list[Resource]:
        return [r for r in self._resources.values() if r.skill == skill]

    def get_monsters_by_level(self, max_level: int) -> list[Monster]:
        return [m for m in self._monsters.values() if m.level <= max_level]

    def get_boss_monsters(self, max_level: int) -> list[Monster]:
        return [m for m in self._monsters.values() if m.type == "boss" and m.level <= max_level]

    def get_items_for_skill(self, skill: str, max_level: int) -> list[Item]:
        """Recipes of a skill craftable at `max_level`, highest craft level first."""
        recipes = [
            i
            for i in self._items.values()
            if i.craft is not None and i.craft.skill == skill and i.craft_level <= max_level
        ]
        return sorted(recipes, key=lambda i: i.craft_level, reverse=True)

    def get_equippable_items(self) -> list[Item]:
        return [i for i in self._items.values() if i.is_equipment]

    def find_resource_for_drop(self, code: str) -> Resource | None:
        """Lowest-level resource that drops `code`."""
        sources = [r for r in self._resources.values() if any(d.code == code for d in r.drops)]
        return min(sources, key=lambda r: r.level) if sources else None

    def find_monster_for_drop(self, code: str) -> Monster | None:
        """Lowest-level monster that drops `code`."""
        sources = [m for m in self._monsters.values() if any(d.code == code for d in m.drops)]
        return min(sources, key=lambda m: m.level) if sources else None

    def get_npc_item_for_product(self, code: str) -> NpcItem | None:
        """An NPC listing that sells `code`."""
        for npc_item in self._npc_items:
            if npc_item.code == code and npc_item.buy_price is not None:
                return npc_item
        return None

    # --- Crafting ---

    def get_craftable_items(
        self, skill: str, level: int, bank_items: list[SimpleItem]
    ) -> list[Item]:
        """Recipes of a skill whose full material list is in the bank right now."""
        bank = bank_quantities(bank_items)
        return [
            recipe
            for recipe in self.get_items_for_skill(skill, level)
            if recipe.craft is not None
            and recipe.craft.items
            and all(bank.get(m.code, 0) >= m.quantity for m in recipe.craft.items)
        ]

    def get_max_craft_quantity(
        self, code: str, bank_items: list[SimpleItem], free_inventory: int
    ) -> int:
        """How many times `code` can be crafted from bank stock and carried at once."""
        item = self._items.get(code)
        if item is None or item.craft is None or not item.craft.items:
            return 0
        bank = bank_quantities(bank_items)
        by_stock = min(
            bank.get(m.code, 0) // m.quantity for m in item.craft.items if m.quantity > 0
        )
        per_craft = sum(m.quantity for m in item.craft.items)
        by_space = free_inventory // per_craft if per_craft > 0 else 0
        return max(0, min(by_stock, by_space))

    def find_needed_gather_resource(
        self, skill: str, level: int, bank_items: list[SimpleItem]
    ) -> Resource | None:
        """A resource of `skill` whose drop some recipe needs and the bank lacks."""
        bank = bank_quantities(bank_items)
        candidates = sorted(
            (r for r in self.get_resources_for_skill(skill) if r.level <= level),
            key=lambda r: r.level,
            reverse=True,
        )
        needed: dict[str, int] = {}
        for item in self._items.values():
            if item.craft is None:
                continue
            for mat in item.craft.items:
                needed[mat.code] = max(needed.get(mat.code, 0), mat.quantity)
        for resource in candidates:
            for drop in resource.drops:
                qty = needed.get(drop.code)
                if qty is not None and bank.get(drop.code, 0) < qty * 5:
                    return resource
        return None

    def resolve_item_chain(
        self,
        code: str,
        bank_items: list[SimpleItem],
        skill_levels: dict[str, int],
        free_inventory: int,
        quantity: int = 1,
    ) -> Goal | None:
        """Next actionable step toward obtaining `quantity` of `code`, or None.

        Walks the recipe graph depth-first. Cycles and depth exhaustion make
        the chain unresolvable rather than raising.
        """
        if free_inventory <= 0:
            return None
        return self._resolve(
            code, quantity, bank_quantities(bank_items), skill_levels, free_inventory, 0, set()
        )

    def _resolve(
        self,
        code: str,
        quantity: int,
        bank: dict[str, int],
        skill_levels: dict[str, int],
        free_inventory: int,
        depth: int,
        visited: set[str],
    ) -> Goal | None:
        if depth > MAX_CHAIN_DEPTH or code in visited:
            return None
        visited.add(code)

        item = self._items.get(code)
        if item is not None and item.craft is not None and item.craft.items:
            skill = item.craft.skill or ""
            if skill_levels.get(skill, 1) < item.craft_level:
                return None
            for mat in item.craft.items:
                needed = mat.quantity * quantity
                if bank.get(mat.code, 0) >= needed:
                    continue
                step = self._resolve(
                    mat.code, needed, bank, skill_levels, free_inventory, depth + 1, visited
                )
                if step is not None:
                    return step
                return None
            per_craft = sum(m.quantity for m in item.craft.items)
            return Craft(item=code, quantity=max(1, min(quantity, free_inventory // per_craft)))

        resource = self.find_resource_for_drop(code)
        if resource is not None and skill_levels.get(resource.skill, 1) >= resource.level:
            if self.find_maps_with_resource(resource.code):
                return Gather(resource=resource.code)

        monster = self.find_monster_for_drop(code)
        if monster is not None and skill_levels.get(COMBAT, 1) >= monster.level:
            if self.find_maps_with_monster(monster.code):
                return Fight(monster=monster.code)

        npc_item = self.get_npc_item_for_product(code)
        if npc_item is not None and npc_item.buy_price is not None:
            if npc_item.currency == "gold" or bank.get(npc_item.currency, 0) >= npc_item.buy_price:
                return BuyNpc(npc=npc_item.npc, item=code, quantity=1)

        return None

    # --- Grand exchange ---

    @staticmethod
    def find_ge_buy_goal(
        code: str, gold: int, quantity: int, orders: list[GEOrder]
    ) -> Goal | None:
        """Buy from the cheapest affordable sell order for `code`."""
        offers = sorted(
            (o for o in orders if o.code == code and o.type == "sell" and o.quantity > 0),
            key=lambda o: o.price,
        )
        for order in offers:
            if order.price <= 0 or order.price > gold:
                continue
            qty = min(quantity, order.quantity, gold // order.price)
            if qty > 0:
                return BuyGe(item=code, max_price=order.price, quantity=qty)
        return None

    def find_ge_sell_goal(self, bank_items: list[SimpleItem]) -> Goal | None:
        """List a large bank surplus of a tradeable item at its NPC resale price."""
        for code, qty in bank_quantities(bank_items).items():
            if qty <= GE_SELL_THRESHOLD:
                continue
            item = self._items.get(code)
            if item is None or not item.tradeable or item.is_equipment:
                continue
            price = next(
                (n.sell_price for n in self._npc_items if n.code == code and n.sell_price),
                None,
            )
            if price is None:
                continue
            return SellGe(item=code, quantity=qty - GE_SELL_KEEP, price=price)
        return None

    # --- Equipment and tasks ---

    def find_craftable_upgrade(
        self,
        state: CharacterState,
        activities: list[ActivityType],
        bank_items: list[SimpleItem],
        free_inventory: int,
    ) -> Goal | None:
        """Next step toward crafting a gear upgrade for one of `activities`."""
        bank = bank_quantities(bank_items)
        skill_levels = state.skill_levels()
        for activity in activities:
            for slot, item_type in SLOT_ITEM_TYPES.items():
                current = self._items.get(state.equipped(slot))
                for candidate in self.get_equippable_items():
                    if candidate.type != item_type or candidate.craft is None:
                        continue
                    if candidate.level > state.level or bank.get(candidate.code, 0) > 0:
                        continue
                    if state.inventory_count(candidate.code) > 0:
                        continue
                    if skill_levels.get(candidate.craft.skill or "", 1) < candidate.craft_level:
                        continue
                    if not should_swap(current, candidate, activity).swap:
                        continue
                    goal = self.resolve_item_chain(
                        candidate.code, bank_items, skill_levels, free_inventory
                    )
                    if goal is not None:
                        return goal
        return None

    def is_task_achievable(self, state: CharacterState) -> bool:
        """False only when the active task provably cannot be progressed."""
        if not state.has_task():
            return True
        if state.task_type == "monsters":
            monster = self._monsters.get(state.task)
            if monster is None or not self.find_maps_with_monster(state.task):
                return False
            return monster.level <= state.level
        if state.task_type == "items":
            return self._is_obtainable(state.task, state.skill_levels(), 0, set())
        return True

    def _is_obtainable(
        self, code: str, skill_levels: dict[str, int], depth: int, visited: set[str]
    ) -> bool:
        if depth > MAX_CHAIN_DEPTH or code in visited:
            return False
        visited = visited | {code}
        item = self._items.get(code)
        if item is not None and item.craft is not None and item.craft.items:
            if skill_levels.get(item.craft.skill or "", 1) < item.craft_level:
                return False
            return all(
                self._is_obtainable(m.code, skill_levels, depth + 1, visited)
                for m in item.craft.items
            )
        resource = self.find_resource_for_drop(code)
        if resource is not None and skill_levels.get(resource.skill, 1) >= resource.level:
            return True
        monster = self.find_monster_for_drop(code)
        if monster is not None and skill_levels.get(COMBAT, 1) >= monster.level:
            return True
        return self.get_npc_item_for_product(code) is not None
