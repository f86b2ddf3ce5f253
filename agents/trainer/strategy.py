"""Trainer strategy — pure function, no I/O.

Works the character's lowest skill that no teammate is already training:
1. gathering: refine from bank stock, gather what recipes lack, else the
   highest resource the level allows
2. combat: fight the highest monster at or below the character level
3. crafting: craft from bank, buy NPC-sold materials, resolve the material
   chain, else buy on the grand exchange
Then a gear upgrade, then selling bank surplus, then idle.
"""

from artifactsfleet import (
    COMBAT,
    CRAFTING_SKILLS,
    GATHERING_SKILLS,
    BoardSnapshot,
    BuyNpc,
    CharacterState,
    Craft,
    Fight,
    GameData,
    Gather,
    Goal,
    Idle,
    SimpleItem,
    bank_quantities,
)
from artifactsfleet.equipment.evaluator import COMBAT_ACTIVITY, gathering_activity


def _others_targets(board: BoardSnapshot, name: str) -> set[str]:
    return {c.target for other, c in board.characters.items() if other != name and c.target}


def _craft_from_bank(
    skill: str, level: int, bank_items: list[SimpleItem], free: int, game_data: GameData
) -> Goal | None:
    craftable = game_data.get_craftable_items(skill, level, bank_items)
    if not craftable:
        return None
    quantity = game_data.get_max_craft_quantity(craftable[0].code, bank_items, free)
    if quantity <= 0:
        return None
    return Craft(item=craftable[0].code, quantity=quantity)


def find_npc_buy_goal(
    skill: str, level: int, bank_items: list[SimpleItem], game_data: GameData
) -> Goal | None:
    """Buy one unit of a missing recipe material an NPC sells, if the bank holds the currency."""
    bank = bank_quantities(bank_items)
    for recipe in game_data.get_items_for_skill(skill, level):
        for mat in recipe.craft.items if recipe.craft else []:
            if bank.get(mat.code, 0) >= mat.quantity:
                continue
            npc_item = game_data.get_npc_item_for_product(mat.code)
            if npc_item is None or npc_item.buy_price is None:
                continue
            if bank.get(npc_item.currency, 0) >= npc_item.buy_price:
                return BuyNpc(npc=npc_item.npc, item=mat.code, quantity=1)
    return None


def _gathering_goal(
    state: CharacterState, skill: str, level: int, board: BoardSnapshot, game_data: GameData
) -> Goal | None:
    bank_items = board.bank.items
    goal = _craft_from_bank(skill, level, bank_items, state.free_inventory(), game_data)
    if goal is not None:
        return goal

    needed = game_data.find_needed_gather_resource(skill, level, bank_items)
    if needed is not None and game_data.find_maps_with_resource(needed.code):
        return Gather(resource=needed.code)

    resources = sorted(
        (r for r in game_data.get_resources_for_skill(skill) if r.level <= level),
        key=lambda r: r.level,
        reverse=True,
    )
    if resources and game_data.find_maps_with_resource(resources[0].code):
        return Gather(resource=resources[0].code)
    return None


def _combat_goal(level: int, game_data: GameData) -> Goal | None:
    monsters = sorted(game_data.get_monsters_by_level(level), key=lambda m: m.level, reverse=True)
    if monsters and game_data.find_maps_with_monster(monsters[0].code):
        return Fight(monster=monsters[0].code)
    return None


def _crafting_goal(
    state: CharacterState, skill: str, level: int, board: BoardSnapshot, game_data: GameData
) -> Goal | None:
    bank_items = board.bank.items
    free = state.free_inventory()
    goal = _craft_from_bank(skill, level, bank_items, free, game_data)
    if goal is not None:
        return goal

    goal = find_npc_buy_goal(skill, level, bank_items, game_data)
    if goal is not None:
        return goal

    bank = bank_quantities(bank_items)
    skill_levels = state.skill_levels()
    for recipe in game_data.get_items_for_skill(skill, level):
        for mat in recipe.craft.items if recipe.craft else []:
            held = bank.get(mat.code, 0)
            if held >= mat.quantity:
                continue
            goal = game_data.resolve_item_chain(mat.code, bank_items, skill_levels, free)
            if goal is not None:
                return goal
            goal = game_data.find_ge_buy_goal(
                mat.code, board.bank.gold, mat.quantity - held, board.ge_orders
            )
            if goal is not None:
                return goal
    return None


def max_all_skills(state: CharacterState, board: BoardSnapshot, game_data: GameData) -> Goal:
    """Train the lowest skill nobody else is on; upgrade gear or sell surplus otherwise."""
    taken = _others_targets(board, state.name)
    levels = state.skill_levels()

    for skill in sorted(levels, key=lambda s: levels[s]):
        if skill in taken:
            continue
        level = levels[skill]
        if skill in GATHERING_SKILLS:
            goal = _gathering_goal(state, skill, level, board, game_data)
        elif skill == COMBAT:
            goal = _combat_goal(level, game_data)
        elif skill in CRAFTING_SKILLS:
            goal = _crafting_goal(state, skill, level, board, game_data)
        else:
            goal = None
        if goal is not None:
            return goal

    weakest_gathering = min(GATHERING_SKILLS, key=lambda s: levels.get(s, 1))
    activities = [COMBAT_ACTIVITY, gathering_activity(weakest_gathering)]
    goal = game_data.find_craftable_upgrade(
        state, activities, board.bank.items, state.free_inventory()
    )
    if goal is not None:
        return goal

    goal = game_data.find_ge_sell_goal(board.bank.items)
    if goal is not None:
        return goal

    return Idle(reason="no valid goal found")
