"""Item scoring for an activity and the swap threshold rule."""

from dataclasses import dataclass

from artifactsfleet.models.character import GATHERING_SKILLS
from artifactsfleet.models.world import Item

# "combat" or "gathering:<skill>"
ActivityType = str

COMBAT_ACTIVITY: ActivityType = "combat"

COMBAT_EFFECTS: frozenset[str] = frozenset(
    {
        "attack_fire",
        "attack_water",
        "attack_earth",
        "attack_air",
        "dmg",
        "dmg_fire",
        "dmg_water",
        "dmg_earth",
        "dmg_air",
        "res_fire",
        "res_water",
        "res_earth",
        "res_air",
        "hp",
        "critical_strike",
        "haste",
        "initiative",
        "wisdom",
        "prospecting",
    }
)

GATHERING_UNIVERSAL: frozenset[str] = frozenset({"wisdom", "prospecting", "haste"})

GATHERING_EFFECTS: dict[ActivityType, frozenset[str]] = {
    f"gathering:{skill}": GATHERING_UNIVERSAL | {skill} for skill in GATHERING_SKILLS
}

# Slot -> item type, rings and artifacts share a type across slots
SLOT_ITEM_TYPES: dict[str, str] = {
    "weapon": "weapon",
    "shield": "shield",
    "helmet": "helmet",
    "body_armor": "body_armor",
    "leg_armor": "leg_armor",
    "boots": "boots",
    "ring1": "ring",
    "ring2": "ring",
    "amulet": "amulet",
    "artifact1": "artifact",
    "artifact2": "artifact",
    "artifact3": "artifact",
    "rune": "rune",
    "bag": "bag",
}

SWAP_PERCENT_THRESHOLD = 0.2
SWAP_ABSOLUTE_FLOOR = 5


@dataclass
class SwapDecision:
    swap: bool
    score_diff: float


def gathering_activity(skill: str) -> ActivityType:
    return f"gathering:{skill}"


def relevant_effects(activity: ActivityType) -> frozenset[str]:
    if activity == COMBAT_ACTIVITY:
        return COMBAT_EFFECTS
    return GATHERING_EFFECTS.get(activity, frozenset())


def score_item(item: Item, activity: ActivityType) -> float:
    """Sum of the item's effect values that matter for `activity`."""
    relevant = relevant_effects(activity)
    return sum(e.value for e in item.effects if e.code in relevant)


def should_swap(current: Item | None, candidate: Item, activity: ActivityType) -> SwapDecision:
    """Decide whether `candidate` is worth swapping in over `current`.

    An empty slot takes any positive score. An occupied slot needs a 20%
    improvement and at least +5 in absolute score.
    """
    current_score = score_item(current, activity) if current is not None else 0
    candidate_score = score_item(candidate, activity)
    diff = candidate_score - current_score

    if diff <= 0:
        return SwapDecision(swap=False, score_diff=diff)

    if current is None:
        return SwapDecision(swap=candidate_score > 0, score_diff=diff)

    # A zero-scoring item is beaten by any percentage
    meets_percent = current_score == 0 or diff / current_score >= SWAP_PERCENT_THRESHOLD
    meets_floor = diff >= SWAP_ABSOLUTE_FLOOR
    return SwapDecision(swap=meets_percent and meets_floor, score_diff=diff)
