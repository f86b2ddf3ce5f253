"""FleetAgent — the decision loop driving one game character."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from artifactsfleet.agent.overrides import TASKS_COIN, select_override
from artifactsfleet.agent.recovery import Recovery, get_error_recovery
from artifactsfleet.board.board import Board, BoardSnapshot, CharacterBoardState
from artifactsfleet.client.api_client import GameApiClient
from artifactsfleet.client.errors import ApiRequestError
from artifactsfleet.client.nats_client import FleetBusClient
from artifactsfleet.equipment.evaluator import COMBAT_ACTIVITY, ActivityType, gathering_activity
from artifactsfleet.equipment.manager import get_equipment_changes
from artifactsfleet.helpers.factory import create_record
from artifactsfleet.helpers.logging import DecisionLogger
from artifactsfleet.models.character import COMBAT, CharacterState
from artifactsfleet.models.envelope import RecordType
from artifactsfleet.models.goals import (
    BuyGe,
    BuyNpc,
    Craft,
    DepositAll,
    Equip,
    Fight,
    Gather,
    Goal,
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
)
from artifactsfleet.models.responses import ActionResult
from artifactsfleet.models.topics import Topics
from artifactsfleet.models.world import GameMap, GEOrder, Resource
from artifactsfleet.world.game_data import GameData

logger = logging.getLogger(__name__)

Strategy = Callable[[CharacterState, BoardSnapshot, GameData], Goal]

STUCK_THRESHOLD = 3
WIN_RATE_THRESHOLD = 0.9
TASK_EXCHANGE_COINS = 6


class GoalSource(Protocol):
    """The team coordinator as seen from one agent."""

    def get_goal(self, name: str, state: CharacterState) -> Goal: ...

    def report_complete(self, name: str) -> None: ...

    def record_craft(self, item: str, quantity: int) -> None: ...


class SafetySimulator(Protocol):
    async def simulate(self, character: CharacterState, monster: str) -> Any: ...

    async def find_best_monster(self, character: CharacterState, game_data: GameData) -> Any: ...


def activity_type(goal: Goal, resource: Resource | None = None) -> ActivityType | None:
    """`combat` for fights, `gathering:<skill>` for gathers of a known resource."""
    match goal:
        case Fight():
            return COMBAT_ACTIVITY
        case Gather():
            if resource is not None and resource.skill:
                return gathering_activity(resource.skill)
            return None
        case _:
            return None


class FleetAgent:
    """Autonomous loop for one character.

    Each tick: wait for cooldown, pick a goal (overrides, then the
    coordinator or strategy), run safety checks, execute it and recover from
    classified API errors. Subclasses may override `decide()` instead of
    passing a strategy.
    """

    def __init__(
        self,
        name: str,
        api: GameApiClient,
        board: Board,
        game_data: GameData,
        *,
        coordinator: GoalSource | None = None,
        strategy: Strategy | None = None,
        simulator: SafetySimulator | None = None,
        bus: FleetBusClient | None = None,
        log_dir: str = "logs",
        error_pause: float = 10.0,
        idle_pause: float = 5.0,
    ) -> None:
        self._name = name
        self._api = api
        self._board = board
        self._game_data = game_data
        self._coordinator = coordinator
        self._strategy = strategy
        self._simulator = simulator
        self._bus = bus
        self._log = DecisionLogger(name, log_dir)
        self._error_pause = error_pause
        self._idle_pause = idle_pause

        self._state: CharacterState | None = None
        self._running = False
        self._consecutive_failures = 0
        self._last_failed_goal: str | None = None
        self._last_activity: ActivityType | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CharacterState | None:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def decide(self, state: CharacterState, snapshot: BoardSnapshot, game_data: GameData) -> Goal:
        """Strategy hook used when no coordinator is configured."""
        if self._strategy is None:
            return Idle(reason="no strategy configured")
        return self._strategy(state, snapshot, game_data)

    # --- Lifecycle ---

    async def run(self) -> None:
        """Run ticks until `stop()` is called; unexpected errors pause and resync."""
        self._running = True
        logger.info("%s: agent starting", self._name)
        self._log.info("Agent starting")
        await self.resync()

        while self._running:
            try:
                if self._state is None:
                    if not await self.resync():
                        await asyncio.sleep(self._error_pause)
                    continue
                await self.tick()
            except Exception:
                logger.exception("%s: unhandled error in agent loop", self._name)
                self._log.exception("Unhandled error in agent loop")
                await asyncio.sleep(self._error_pause)
                await self.resync()

        logger.info("%s: agent stopped", self._name)

    def stop(self) -> None:
        """Ask the loop to exit after the current tick."""
        self._running = False
        self._log.info("Agent stopping")

    async def resync(self) -> bool:
        """Re-fetch authoritative state from the API."""
        try:
            self._state = await self._api.get_character(self._name)
        except Exception:
            logger.warning("%s: failed to resync state, will retry", self._name)
            self._log.error("Failed to recover state, will retry")
            return False
        self._push_board(None)
        return True

    # --- Tick ---

    async def tick(self) -> None:
        await self._api.wait_for_cooldown(self._name)
        state = self._require_state()
        snapshot = self._board.get_snapshot()

        goal, reason = self.choose_goal(state, snapshot)
        goal, reason = self._apply_stuck_detection(goal, reason)
        goal, reason = await self._check_fight_safety(goal, reason)
        await self._maybe_swap_equipment(goal)

        self._push_board(goal)
        await self._record_decision(goal, reason, snapshot)
        await self._execute_with_recovery(goal)
        self._push_board(goal)

    def choose_goal(self, state: CharacterState, snapshot: BoardSnapshot) -> tuple[Goal, str]:
        """Overrides first, then the coordinator, then the strategy."""
        override = select_override(state, self._game_data)
        if override is not None:
            return override
        if self._coordinator is not None:
            return self._coordinator.get_goal(self._name, state), "coordinator assignment"
        return self.decide(state, snapshot, self._game_data), "strategy decision"

    def _apply_stuck_detection(self, goal: Goal, reason: str) -> tuple[Goal, str]:
        identity = goal_identity(goal)
        if identity != self._last_failed_goal:
            self._reset_failures()
            return goal, reason
        if self._consecutive_failures >= STUCK_THRESHOLD:
            logger.warning(
                "%s: stuck on %s after %d failures",
                self._name,
                identity,
                self._consecutive_failures,
            )
            self._log.warning(
                "Stuck detected, idling",
                data={"failed_goal": goal_to_dict(goal), "failures": self._consecutive_failures},
            )
            self._reset_failures()
            return Idle(reason="stuck after 3 failures"), "stuck detection"
        return goal, reason

    def _reset_failures(self) -> None:
        self._consecutive_failures = 0
        self._last_failed_goal = None

    def _record_failure(self, goal: Goal) -> None:
        identity = goal_identity(goal)
        if identity != self._last_failed_goal:
            self._consecutive_failures = 0
        self._consecutive_failures += 1
        self._last_failed_goal = identity

    async def _check_fight_safety(self, goal: Goal, reason: str) -> tuple[Goal, str]:
        """Swap an unsafe solo fight for the strongest monster we reliably beat."""
        if self._simulator is None or not isinstance(goal, Fight):
            return goal, reason
        if self._name in (goal.party or ()):
            return goal, reason
        state = self._require_state()
        try:
            result = await self._simulator.simulate(state, goal.monster)
            if result.win_rate >= WIN_RATE_THRESHOLD:
                return goal, reason
            best = await self._simulator.find_best_monster(state, self._game_data)
        except ApiRequestError as err:
            logger.warning("%s: fight simulation failed: %s", self._name, err)
            return goal, reason
        if best is None:
            return Idle(reason="no safe monster"), f"fight safety: {goal.monster} unsafe"
        logger.info(
            "%s: %s unsafe (%.0f%%), fighting %s instead",
            self._name,
            goal.monster,
            result.win_rate * 100,
            best.monster.code,
        )
        return Fight(monster=best.monster.code), f"fight safety: {goal.monster} unsafe"

    async def _maybe_swap_equipment(self, goal: Goal) -> None:
        resource = self._game_data.get_resource(goal.resource) if isinstance(goal, Gather) else None
        activity = activity_type(goal, resource)
        if activity is None or activity == self._last_activity:
            return
        try:
            await self._swap_equipment(activity)
        except Exception:
            logger.exception("%s: equipment swap failed", self._name)
            self._log.error("Equipment swap failed")
        self._last_activity = activity

    async def _swap_equipment(self, activity: ActivityType) -> None:
        state = self._require_state()
        bank_items = self._board.get_snapshot().bank.items
        changes = get_equipment_changes(state, bank_items, self._game_data, activity)
        if not changes:
            return

        self._log.info(
            "Swapping gear",
            data={
                "activity": activity,
                "changes": [
                    {"slot": c.slot, "from": c.unequip_code, "to": c.equip_code} for c in changes
                ],
            },
        )
        if not await self._move_to_bank():
            return
        for change in changes:
            if change.unequip_code:
                self._apply(await self._api.unequip(self._name, change.slot))
                result = await self._api.deposit_items(
                    self._name, [{"code": change.unequip_code, "quantity": 1}]
                )
                self._apply(result)
            self._apply(
                await self._api.withdraw_items(
                    self._name, [{"code": change.equip_code, "quantity": 1}]
                )
            )
            self._apply(await self._api.equip(self._name, change.equip_code, change.slot))

    async def _execute_with_recovery(self, goal: Goal) -> None:
        try:
            finished = await self.execute_goal(goal)
        except ApiRequestError as err:
            await self._recover(goal, err)
            return
        self._reset_failures()
        if finished and self._coordinator is not None:
            self._coordinator.report_complete(self._name)

    async def _recover(self, goal: Goal, err: ApiRequestError) -> None:
        outcome = get_error_recovery(err.error_code, self._require_state(), goal)
        self._log.error(
            "Action failed",
            data={
                "goal": goal_to_dict(goal),
                "error_code": err.error_code,
                "error_message": err.message,
                "recovery": (
                    outcome.value if isinstance(outcome, Recovery) else goal_to_dict(outcome)
                ),
            },
        )
        match outcome:
            case Recovery.SKIP:
                logger.info("%s: skipping %s (error %d)", self._name, goal.kind, err.error_code)
                self._reset_failures()
            case Recovery.UNKNOWN:
                logger.warning(
                    "%s: %s failed with %d: %s", self._name, goal.kind, err.error_code, err.message
                )
                self._record_failure(goal)
            case _:
                logger.info(
                    "%s: %s failed with %d, recovering with %s",
                    self._name,
                    goal.kind,
                    err.error_code,
                    outcome.kind,
                )
                self._reset_failures()
                try:
                    await self.execute_goal(outcome)
                except ApiRequestError as recovery_err:
                    logger.warning(
                        "%s: recovery %s failed with %d",
                        self._name,
                        outcome.kind,
                        recovery_err.error_code,
                    )
                    self._record_failure(outcome)

    # --- Execution ---

    async def execute_goal(self, goal: Goal) -> bool:
        """Execute one goal. Returns False when only a step toward it was taken."""
        state = self._require_state()
        match goal:
            case Rest():
                result = await self._api.rest(self._name)
                self._apply(result)
                self._log.info("Rested", data={"hp": result.character.hp})
                return True

            case DepositAll():
                return await self._deposit_all()

            case Gather(resource=resource):
                target = self._game_data.find_nearest_map(
                    state.x, state.y, self._game_data.find_maps_with_resource(resource)
                )
                if target is None:
                    self._log.error("No map found for resource", data={"resource": resource})
                    return False
                if await self._step_toward(target):
                    return False
                result = await self._api.gather(self._name)
                self._apply(result)
                self._log.info(
                    "Gathered",
                    data={
                        "xp": result.details.get("details", {}).get("xp"),
                        "items": result.details.get("details", {}).get("items"),
                    },
                )
                return True

            case Fight():
                return await self._fight(goal)

            case Craft():
                return await self._craft(goal)

            case Move(x=x, y=y):
                self._apply(await self._api.move(self._name, x, y))
                self._log.info("Moved", data={"x": x, "y": y})
                return True

            case Equip(code=code, slot=slot):
                self._apply(await self._api.equip(self._name, code, slot))
                self._log.info("Equipped", data={"code": code, "slot": slot})
                return True

            case Unequip(slot=slot):
                self._apply(await self._api.unequip(self._name, slot))
                self._log.info("Unequipped", data={"slot": slot})
                return True

            case BuyNpc():
                return await self._buy_npc(goal)

            case BuyGe():
                return await self._buy_ge(goal)

            case SellGe():
                return await self._sell_ge(goal)

            case TaskNew() | TaskComplete() | TaskTrade() | TaskCancel():
                return await self._task_action(goal)

            case Idle(reason=reason):
                logger.info("%s: idling (%s)", self._name, reason)
                self._log.info("Idling", data={"reason": reason})
                await asyncio.sleep(self._idle_pause)
                self._state = await self._api.get_character(self._name)
                return True

    async def _deposit_all(self) -> bool:
        held = self._require_state().held_items()
        items = [{"code": code, "quantity": qty} for code, qty in held]
        if not items:
            return True
        if not await self._move_to_bank():
            return False
        result = await self._api.deposit_items(self._name, items)
        self._apply(result)
        self._board.update_bank(result.bank, self._board.get_snapshot().bank.gold)
        self._log.info("Deposited items", data={"count": len(items)})
        return True

    async def _fight(self, goal: Fight) -> bool:
        state = self._require_state()
        maps = self._game_data.find_maps_with_monster(goal.monster)
        # A party that does not name this character is fought solo
        in_party = self._name in (goal.party or ())
        if in_party:
            # Every member heads for the same map
            target = maps[0] if maps else None
        else:
            target = self._game_data.find_nearest_map(state.x, state.y, maps)
        if target is None:
            self._log.error("No map found for monster", data={"monster": goal.monster})
            return False
        if await self._step_toward(target):
            return False

        participants: list[str] | None = None
        if in_party and goal.party:
            leader, *members = goal.party
            if leader != self._name:
                # The leader's fight puts everyone on cooldown; pick up the new state
                await asyncio.sleep(self._idle_pause)
                self._state = await self._api.get_character(self._name)
                return False
            positions = self._board.get_snapshot().characters
            waiting = [
                m
                for m in members
                if m not in positions or positions[m].position != (target.x, target.y)
            ]
            if waiting:
                logger.info("%s: waiting for party members %s", self._name, waiting)
                await asyncio.sleep(self._idle_pause)
                return False
            participants = members

        result = await self._api.fight(self._name, participants)
        own = result.character(self._name)
        if own is not None:
            self._state = own
        mine = next((c for c in result.character_results if c.character_name == self._name), None)
        self._log.info(
            "Fought",
            data={
                "opponent": result.opponent,
                "result": result.result,
                "xp": mine.xp if mine else 0,
                "gold": mine.gold if mine else 0,
                "drops": [d.model_dump() for d in mine.drops] if mine else [],
            },
        )
        return True

    async def _craft(self, goal: Craft) -> bool:
        recipe = self._game_data.get_item(goal.item)
        if recipe is None or recipe.craft is None:
            self._log.error("Unknown recipe", data={"item": goal.item})
            return False

        missing = [
            (m.code, m.quantity * goal.quantity - self._require_state().inventory_count(m.code))
            for m in recipe.craft.items
        ]
        missing = [(code, qty) for code, qty in missing if qty > 0]
        if missing:
            if not await self._move_to_bank():
                return False
            for code, qty in missing:
                self._apply(
                    await self._api.withdraw_items(self._name, [{"code": code, "quantity": qty}])
                )

        state = self._require_state()
        workshop = self._game_data.find_workshop(recipe.craft.skill or "", state.x, state.y)
        if workshop is None:
            self._log.error("No workshop found", data={"skill": recipe.craft.skill})
            return False
        await self._move_to(workshop)

        result = await self._api.craft(self._name, goal.item, goal.quantity)
        self._apply(result)
        if self._coordinator is not None:
            self._coordinator.record_craft(goal.item, goal.quantity)
        self._log.info(
            "Crafted",
            data={
                "item": goal.item,
                "quantity": goal.quantity,
                "xp": result.details.get("details", {}).get("xp"),
            },
        )
        return True

    async def _buy_npc(self, goal: BuyNpc) -> bool:
        npc_item = self._game_data.get_npc_item_for_product(goal.item)
        if npc_item is None or npc_item.buy_price is None:
            self._log.error("Unknown NPC item", data={"item": goal.item})
            return False

        if npc_item.currency != "gold":
            needed = npc_item.buy_price * goal.quantity
            short = needed - self._require_state().inventory_count(npc_item.currency)
            if short > 0:
                if not await self._move_to_bank():
                    return False
                self._apply(
                    await self._api.withdraw_items(
                        self._name, [{"code": npc_item.currency, "quantity": short}]
                    )
                )

        npc_map = self._game_data.find_npc_map(goal.npc)
        if npc_map is None:
            self._log.error("NPC not found on map", data={"npc": goal.npc})
            return False
        await self._move_to(npc_map)
        self._apply(await self._api.buy_npc(self._name, goal.item, goal.quantity))
        self._log.info(
            "Bought from NPC",
            data={"npc": goal.npc, "item": goal.item, "quantity": goal.quantity},
        )

        bought = self._require_state().inventory_count(goal.item)
        if bought > 0 and await self._move_to_bank():
            result = await self._api.deposit_items(
                self._name, [{"code": goal.item, "quantity": bought}]
            )
            self._apply(result)
            self._board.update_bank(result.bank, self._board.get_snapshot().bank.gold)
        return True

    async def _buy_ge(self, goal: BuyGe) -> bool:
        orders = await self._refresh_ge_orders(goal.item)
        offers = sorted(
            (
                o
                for o in orders
                if o.type == "sell" and o.price <= goal.max_price and o.quantity > 0
            ),
            key=lambda o: o.price,
        )
        if not offers:
            self._log.info("No affordable sell order", data={"item": goal.item})
            return True
        order = offers[0]
        quantity = min(goal.quantity, order.quantity)
        cost = order.price * quantity

        short = cost - self._require_state().gold
        if short > 0:
            if not await self._move_to_bank():
                return False
            self._apply(await self._api.withdraw_gold(self._name, short))

        state = self._require_state()
        exchange = self._game_data.find_grand_exchange(state.x, state.y)
        if exchange is None:
            self._log.error("No grand exchange found")
            return False
        await self._move_to(exchange)
        self._apply(await self._api.buy_ge(self._name, order.id, quantity))
        self._log.info(
            "Bought on grand exchange",
            data={"item": goal.item, "quantity": quantity, "price": order.price},
        )
        await self._refresh_ge_orders(goal.item)
        return True

    async def _sell_ge(self, goal: SellGe) -> bool:
        short = goal.quantity - self._require_state().inventory_count(goal.item)
        if short > 0:
            if not await self._move_to_bank():
                return False
            self._apply(
                await self._api.withdraw_items(self._name, [{"code": goal.item, "quantity": short}])
            )

        state = self._require_state()
        exchange = self._game_data.find_grand_exchange(state.x, state.y)
        if exchange is None:
            self._log.error("No grand exchange found")
            return False
        await self._move_to(exchange)
        self._apply(await self._api.sell_ge(self._name, goal.item, goal.quantity, goal.price))
        self._log.info(
            "Listed on grand exchange",
            data={"item": goal.item, "quantity": goal.quantity, "price": goal.price},
        )
        await self._refresh_ge_orders(goal.item)
        return True

    async def _refresh_ge_orders(self, code: str) -> list[GEOrder]:
        payload = await self._api.get_ge_orders(code)
        orders = [GEOrder.model_validate(o) for o in payload.get("data", [])]
        current = [o for o in self._board.get_snapshot().ge_orders if o.code != code]
        self._board.update_ge_orders(current + orders)
        return orders

    async def _task_action(self, goal: TaskNew | TaskComplete | TaskTrade | TaskCancel) -> bool:
        state = self._require_state()

        if isinstance(goal, TaskTrade):
            quantity = min(state.inventory_count(state.task), state.task_remaining())
            if quantity <= 0:
                return True

        if isinstance(goal, TaskCancel) and state.inventory_count(TASKS_COIN) < 1:
            if not await self._move_to_bank():
                return False
            self._apply(
                await self._api.withdraw_items(self._name, [{"code": TASKS_COIN, "quantity": 1}])
            )

        state = self._require_state()
        master = self._game_data.find_tasks_master(state.task_type, state.x, state.y)
        if master is None:
            self._log.error("No tasks master found", data={"task_type": state.task_type})
            return False
        await self._move_to(master)

        match goal:
            case TaskNew():
                result = await self._api.task_new(self._name)
            case TaskComplete():
                result = await self._api.task_complete(self._name)
            case TaskTrade():
                result = await self._api.task_trade(self._name, state.task, quantity)
            case TaskCancel():
                result = await self._api.task_cancel(self._name)
        self._apply(result)
        self._log.info("Task action", data={"action": goal.kind.value, "task": state.task})

        if isinstance(goal, TaskComplete) and (
            self._require_state().inventory_count(TASKS_COIN) >= TASK_EXCHANGE_COINS
        ):
            self._apply(await self._api.task_exchange(self._name))
            self._log.info("Exchanged task coins")
        return True

    # --- Movement ---

    async def _step_toward(self, target: GameMap) -> bool:
        """Move one step toward `target`; True if a move was made."""
        state = self._require_state()
        if (state.x, state.y) == (target.x, target.y):
            return False
        self._apply(await self._api.move(self._name, target.x, target.y))
        return True

    async def _move_to(self, target: GameMap) -> None:
        await self._step_toward(target)

    async def _move_to_bank(self) -> bool:
        state = self._require_state()
        bank = self._game_data.find_nearest_bank(state.x, state.y)
        if bank is None:
            self._log.error("No bank found on any map")
            return False
        await self._move_to(bank)
        return True

    # --- State and board ---

    def _require_state(self) -> CharacterState:
        if self._state is None:
            raise RuntimeError(f"{self._name}: state not loaded")
        return self._state

    def _apply(self, result: ActionResult) -> None:
        self._state = result.character

    def _target_skill(self, goal: Goal | None) -> str:
        match goal:
            case Gather(resource=resource):
                found = self._game_data.get_resource(resource)
                return found.skill if found else ""
            case Fight():
                return COMBAT
            case Craft(item=item):
                recipe = self._game_data.get_item(item)
                if recipe is not None and recipe.craft is not None and recipe.craft.skill:
                    return recipe.craft.skill
                return "crafting"
            case _:
                return ""

    def _push_board(self, goal: Goal | None) -> None:
        if self._state is None:
            return
        self._board.update_character(
            self._name,
            CharacterBoardState(
                current_action=goal.kind.value if goal is not None else "evaluating",
                target=self._target_skill(goal),
                position=(self._state.x, self._state.y),
                skill_levels=self._state.skill_levels(),
                inventory_used=self._state.total_quantity(),
                inventory_max=self._state.inventory_max_items,
            ),
        )

    def _summary(self) -> dict[str, Any]:
        state = self._require_state()
        return {
            "hp": state.hp,
            "max_hp": state.max_hp,
            "x": state.x,
            "y": state.y,
            "inventory_used": state.total_quantity(),
            "inventory_max": state.inventory_max_items,
        }

    async def _record_decision(self, goal: Goal, reason: str, snapshot: BoardSnapshot) -> None:
        record = {
            "goal": goal_to_dict(goal),
            "reason": reason,
            "board": snapshot.to_dict(),
            "state": self._summary(),
        }
        self._log.decision(record["goal"], reason, record["board"], record["state"])
        if self._bus is None:
            return
        topic = Topics.decisions(self._name)
        envelope = create_record(
            from_agent=self._name,
            topic=topic,
            record_type=RecordType.DECISION,
            payload=record,
        )
        try:
            await self._bus.publish(topic, envelope)
        except Exception:
            logger.warning("%s: failed to publish decision", self._name, exc_info=True)
