"""FightSimulator — memoized fight outcome estimates from the simulation endpoint."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from artifactsfleet import CharacterState, GameApiClient, GameData, Monster
from artifactsfleet.models.responses import SimulationResponse

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 100
WIN_RATE_THRESHOLD = 0.9

# Each party member beyond the first adds 30% effective level
PARTY_LEVEL_BONUS = 0.3
HEURISTIC_WIN_CAP = 0.99
HEURISTIC_TURNS = 15.0

# Build fields in key order; empty ones are left out of the request body
_SIM_SLOTS = (
    "weapon_slot",
    "shield_slot",
    "helmet_slot",
    "body_armor_slot",
    "leg_armor_slot",
    "boots_slot",
    "rune_slot",
    "ring1_slot",
    "ring2_slot",
    "amulet_slot",
    "artifact1_slot",
    "artifact2_slot",
    "artifact3_slot",
    "utility1_slot",
    "utility1_slot_quantity",
    "utility2_slot",
    "utility2_slot_quantity",
)


@dataclass
class SimulationResult:
    win_rate: float
    avg_final_hp: float
    avg_turns: float


@dataclass
class MonsterChoice:
    monster: Monster
    result: SimulationResult


def _summarize(response: SimulationResponse) -> SimulationResult:
    fights = response.results
    if not fights:
        return SimulationResult(win_rate=0.0, avg_final_hp=0.0, avg_turns=0.0)
    wins = sum(1 for f in fights if f.result == "win")
    hp = 0.0
    for fight in fights:
        finals = [c.final_hp for c in fight.character_results]
        hp += sum(finals) / len(finals) if finals else 0.0
    return SimulationResult(
        win_rate=wins / len(fights),
        avg_final_hp=hp / len(fights),
        avg_turns=sum(f.turns for f in fights) / len(fights),
    )


class FightSimulator:
    def __init__(self, api: GameApiClient, iterations: int = DEFAULT_ITERATIONS) -> None:
        self._api = api
        self._iterations = iterations
        self._cache: dict[str, SimulationResult] = {}
        # Simulations in flight, awaited by every caller asking for the same key
        self._pending: dict[str, asyncio.Task[SimulationResult]] = {}

    @staticmethod
    def to_sim_input(character: CharacterState) -> dict[str, Any]:
        sim: dict[str, Any] = {"level": character.level}
        for name in _SIM_SLOTS:
            value = getattr(character, name)
            if value:
                sim[name] = value
        return sim

    @staticmethod
    def cache_key(character: CharacterState, monster: str) -> str:
        """Level, every build field and the opponent joined with `|`."""
        parts = [str(character.level)]
        parts.extend(str(getattr(character, name)) for name in _SIM_SLOTS)
        parts.append(monster)
        return "|".join(parts)

    def get_cached(self, character: CharacterState, monster: str) -> SimulationResult | None:
        return self._cache.get(self.cache_key(character, monster))

    async def simulate(self, character: CharacterState, monster: str) -> SimulationResult:
        """Solo simulation; identical builds share one cached result object.

        Concurrent callers with the same key wait on a single request.
        """
        key = self.cache_key(character, monster)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.create_task(self._simulate_uncached(key, character, monster))
            self._pending[key] = pending
        return await asyncio.shield(pending)

    async def _simulate_uncached(
        self, key: str, character: CharacterState, monster: str
    ) -> SimulationResult:
        try:
            response = await self._api.simulate_fight(
                [self.to_sim_input(character)], monster, self._iterations
            )
        finally:
            self._pending.pop(key, None)
        result = _summarize(response)
        logger.debug(
            "Simulated %s vs %s: %.0f%% wins", character.name, monster, result.win_rate * 100
        )
        self._cache[key] = result
        return result

    async def simulate_party(
        self, characters: list[CharacterState], monster: str
    ) -> SimulationResult:
        """Party simulation, falling back to a level heuristic when the call fails."""
        try:
            response = await self._api.simulate_fight(
                [self.to_sim_input(c) for c in characters], monster, self._iterations
            )
        except Exception as err:
            logger.warning("Party simulation vs %s failed (%s), using estimate", monster, err)
            return self._estimate_party(characters)
        return _summarize(response)

    @staticmethod
    def _estimate_party(characters: list[CharacterState]) -> SimulationResult:
        if not characters:
            return SimulationResult(win_rate=0.0, avg_final_hp=100.0, avg_turns=HEURISTIC_TURNS)
        avg_level = sum(c.level for c in characters) / len(characters)
        effective = avg_level * (1 + PARTY_LEVEL_BONUS * (len(characters) - 1))
        return SimulationResult(
            win_rate=min(effective / (effective + 10), HEURISTIC_WIN_CAP),
            avg_final_hp=float(characters[0].max_hp),
            avg_turns=HEURISTIC_TURNS,
        )

    async def find_best_boss(
        self, characters: list[CharacterState], game_data: GameData
    ) -> MonsterChoice | None:
        """Strongest boss the party beats at the safety threshold."""
        if not characters:
            return None
        max_level = max(c.level for c in characters)
        search_level = max(max_level * 2, max_level + 10)
        bosses = sorted(
            game_data.get_boss_monsters(search_level), key=lambda m: m.level, reverse=True
        )
        for boss in bosses:
            result = await self.simulate_party(characters, boss.code)
            if result.win_rate >= WIN_RATE_THRESHOLD:
                return MonsterChoice(monster=boss, result=result)
        return None

    async def find_best_monster(
        self, character: CharacterState, game_data: GameData
    ) -> MonsterChoice | None:
        """Strongest monster at or below the character's level it reliably beats."""
        candidates = sorted(
            game_data.get_monsters_by_level(character.level), key=lambda m: m.level, reverse=True
        )
        for monster in candidates:
            result = await self.simulate(character, monster.code)
            if result.win_rate >= WIN_RATE_THRESHOLD:
                return MonsterChoice(monster=monster, result=result)
        return None
