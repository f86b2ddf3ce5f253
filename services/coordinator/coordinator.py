"""Coordinator — team-level goal assignment for every agent in the fleet.

Owns the reservation ledger, the active plan and the boss party. Agents call
`get_goal` once per tick; the call is one critical section.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Protocol

from artifactsfleet import (
    COMBAT,
    Board,
    BoardSnapshot,
    CharacterState,
    Craft,
    DepositAll,
    Fight,
    GameData,
    Goal,
    Idle,
    SimpleItem,
    Strategy,
    stage_key,
    target_key,
)

from services.coordinator.ledger import ReservationLedger
from services.coordinator.pipeline import assign_character_to_stage, get_team_bottleneck
from services.coordinator.planner import (
    ActivePlan,
    build_active_plan,
    should_complete_plan,
    should_deposit,
    update_plan_progress,
)

logger = logging.getLogger(__name__)

PARTY_SIZE = 3


class BossFinder(Protocol):
    async def find_best_boss(
        self, characters: list[CharacterState], game_data: GameData
    ) -> Any: ...


@dataclass(frozen=True)
class PartyGoal:
    monster: str
    party: tuple[str, ...]

    def to_goal(self) -> Fight:
        return Fight(monster=self.monster, party=self.party)


@dataclass
class _PartyResult:
    plan: ActivePlan
    party: PartyGoal


class Coordinator:
    def __init__(
        self,
        board: Board,
        game_data: GameData,
        strategy: Strategy,
        *,
        character_names: list[str] | None = None,
        simulator: BossFinder | None = None,
        ledger: ReservationLedger | None = None,
    ) -> None:
        self._board = board
        self._game_data = game_data
        self._strategy = strategy
        self._character_names = list(character_names or [])
        self._simulator = simulator
        self._ledger = ledger if ledger is not None else ReservationLedger()

        self._lock = threading.Lock()
        self._assignments: dict[str, Goal] = {}
        self._assignment_keys: dict[str, str] = {}
        self._character_states: dict[str, CharacterState] = {}
        self._active_plan: ActivePlan | None = None
        self._party: PartyGoal | None = None

        # Boss search in flight and the latest result it delivered
        self._party_task: asyncio.Task | None = None
        self._party_result: _PartyResult | None = None

    @property
    def ledger(self) -> ReservationLedger:
        return self._ledger

    @property
    def party_goal(self) -> PartyGoal | None:
        return self._party

    def get_goal(self, name: str, state: CharacterState) -> Goal:
        with self._lock:
            self._ledger.expire_stale()
            self._ledger.clear(name)
            self._character_states[name] = state

            snapshot = self._adjusted_snapshot()
            if self._character_names:
                goal = self._plan_with_pipeline(name, state, snapshot)
            else:
                goal = self._plan_with_strategy(name, state, snapshot)

            reservation = self._compute_reservation(goal)
            if reservation:
                self._ledger.reserve(name, reservation)

            self._assignments[name] = goal
            logger.debug("Assigned %s to %s", goal.kind, name)
            return goal

    def report_complete(self, name: str) -> None:
        with self._lock:
            self._ledger.clear(name)
            self._assignments.pop(name, None)
            self._assignment_keys.pop(name, None)

    def record_craft(self, item: str, quantity: int) -> None:
        with self._lock:
            if self._active_plan is not None:
                self._active_plan.record_craft(item, quantity)

    def get_assignment(self, name: str) -> Goal | None:
        with self._lock:
            return self._assignments.get(name)

    def get_assigned_targets(self) -> set[str]:
        with self._lock:
            return {key for g in self._assignments.values() if (key := target_key(g))}

    def get_active_plan(self) -> ActivePlan | None:
        with self._lock:
            return self._active_plan

    # --- Pipeline path ---

    def _plan_with_pipeline(
        self, name: str, state: CharacterState, snapshot: BoardSnapshot
    ) -> Goal:
        team = self._team_characters(name, state, snapshot)
        self._manage_plan_lifecycle(team, snapshot)
        plan = self._active_plan
        if plan is None:
            return self._plan_with_strategy(name, state, snapshot)

        self._consume_party_result()
        if self._party is not None and name in self._party.party:
            return self._party.to_goal()

        if plan.target_skill == COMBAT and self._simulator is not None:
            self._start_party_search(plan, team, self._simulator)

        update_plan_progress(plan, snapshot.bank.items, self._character_states.values())

        if should_deposit(plan, name, state, self._assignment_keys, snapshot.bank.items):
            return DepositAll()

        if not plan.stages:
            return self._plan_with_strategy(name, state, snapshot)

        goal = assign_character_to_stage(
            name,
            state,
            plan.stages,
            self._assignment_keys,
            self._assignment_keys.get(name),
        )
        if isinstance(goal, Idle):
            return self._plan_with_strategy(name, state, snapshot)

        key = stage_key(goal)
        if key:
            self._assignment_keys[name] = key
        return goal

    def _manage_plan_lifecycle(self, team: list[CharacterState], snapshot: BoardSnapshot) -> None:
        if self._active_plan is not None and not should_complete_plan(self._active_plan, team):
            return
        if self._active_plan is not None:
            logger.info(
                "Plan for %s complete (crafted %d)",
                self._active_plan.target_skill,
                self._active_plan.progress.crafted,
            )
        self._replace_plan(self._plan_from_bottleneck(team, snapshot))

    def _plan_from_bottleneck(
        self, team: list[CharacterState], snapshot: BoardSnapshot
    ) -> ActivePlan | None:
        for bottleneck in get_team_bottleneck(team):
            plan = build_active_plan(bottleneck.skill, team, snapshot.bank.items, self._game_data)
            if plan is not None and plan.stages:
                logger.info(
                    "New plan: train %s via %s (%d stages)",
                    plan.target_skill,
                    plan.target_recipe,
                    len(plan.stages),
                )
                return plan
        return None

    def _replace_plan(self, plan: ActivePlan | None) -> None:
        self._active_plan = plan
        self._party = None
        self._party_result = None
        if self._party_task is not None and not self._party_task.done():
            self._party_task.cancel()
        self._party_task = None

    def _team_characters(
        self, name: str, state: CharacterState, snapshot: BoardSnapshot
    ) -> list[CharacterState]:
        """Every known teammate; board-only ones become skill-level stand-ins."""
        team = [state]
        for other in self._character_names:
            if other == name:
                continue
            cached = self._character_states.get(other)
            if cached is not None:
                team.append(cached)
                continue
            board_state = snapshot.characters.get(other)
            if board_state is None:
                continue
            levels = board_state.skill_levels
            fields: dict[str, Any] = {
                f"{skill}_level": level for skill, level in levels.items() if skill != COMBAT
            }
            team.append(CharacterState(name=other, level=levels.get(COMBAT, 1), **fields))
        return team

    # --- Boss party ---

    def _start_party_search(
        self, plan: ActivePlan, team: list[CharacterState], simulator: BossFinder
    ) -> None:
        if len({c.name for c in team}) < PARTY_SIZE or self._party is not None:
            return
        if self._party_task is not None and not self._party_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        members = sorted(team, key=lambda c: c.name)[:PARTY_SIZE]
        self._party_task = loop.create_task(self._search_boss(plan, members, simulator))

    async def _search_boss(
        self, plan: ActivePlan, members: list[CharacterState], simulator: BossFinder
    ) -> None:
        try:
            found = await simulator.find_best_boss(members, self._game_data)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("Boss search failed, staying on solo combat", exc_info=True)
            return
        if found is None:
            logger.info("No beatable boss for party %s", [m.name for m in members])
            return
        party = PartyGoal(monster=found.monster.code, party=tuple(m.name for m in members))
        with self._lock:
            self._party_result = _PartyResult(plan=plan, party=party)

    def _consume_party_result(self) -> None:
        result, self._party_result = self._party_result, None
        if result is None:
            return
        plan = self._active_plan
        if result.plan is not plan or plan is None or plan.target_skill != COMBAT:
            logger.debug("Discarding stale party result for %s", result.party.monster)
            return
        if self._party is not None:
            return
        self._party = result.party
        logger.info("Party formed: %s vs %s", list(result.party.party), result.party.monster)

    # --- Strategy fallback ---

    def _plan_with_strategy(
        self, name: str, state: CharacterState, snapshot: BoardSnapshot
    ) -> Goal:
        goal = self._strategy(state, snapshot, self._game_data)
        if self._is_duplicate(name, goal):
            logger.info("%s: %s already targeted by a teammate", name, target_key(goal))
            return Idle(reason="coordinator: duplicate target avoided")
        return goal

    def _is_duplicate(self, name: str, goal: Goal) -> bool:
        key = target_key(goal)
        if key is None:
            return False
        if isinstance(goal, Fight) and goal.is_party:
            return False
        for other, assigned in self._assignments.items():
            if other == name:
                continue
            if isinstance(assigned, Fight) and assigned.is_party:
                continue
            if target_key(assigned) == key:
                return True
        return False

    def _adjusted_snapshot(self) -> BoardSnapshot:
        snapshot = self._board.get_snapshot()
        available = self._ledger.get_available(snapshot.bank.items)
        snapshot.bank = replace(snapshot.bank, items=available)
        return snapshot

    def _compute_reservation(self, goal: Goal) -> list[SimpleItem]:
        if not isinstance(goal, Craft):
            return []
        item = self._game_data.get_item(goal.item)
        if item is None or item.craft is None:
            return []
        return [
            SimpleItem(code=m.code, quantity=m.quantity * goal.quantity) for m in item.craft.items
        ]
