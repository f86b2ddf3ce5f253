"""GameApiClient — async facade over the game's HTTP API.

HTTP calls are made with `requests` in worker threads (`asyncio.to_thread`),
so awaiting a response never blocks the event loop that runs the agents.
"""

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import requests

from artifactsfleet.client.errors import ApiRequestError, ErrorCode
from artifactsfleet.models.character import CharacterState
from artifactsfleet.models.responses import (
    ActionResult,
    BankResult,
    Cooldown,
    FightResult,
    SimulationResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.artifactsmmo.com"
MAX_RETRIES = 3
INITIAL_BACKOFF = 1.0
REQUEST_TIMEOUT = 30.0
COOLDOWN_SLACK = 0.1
PAGE_SIZE = 100

_COOLDOWN_SECONDS = re.compile(r"([\d.]+) seconds? remaining")
_CHARACTER_PATH = re.compile(r"^/my/([^/]+)/")


def _parse_timestamp(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).timestamp()
    except ValueError:
        return None


class GameApiClient:
    """Game API client with retry/backoff and per-character cooldown tracking.

    Usage:
        api = GameApiClient(token)
        character = await api.get_character("alice")
        result = await api.gather("alice")
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session: requests.Session | None = None,
        max_retries: int = MAX_RETRIES,
        initial_backoff: float = INITIAL_BACKOFF,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._max_retries = max_retries
        self._initial_backoff = initial_backoff
        self._cooldowns: dict[str, float] = {}

    # --- Cooldowns ---

    def set_cooldown(self, name: str, expires_at: float) -> None:
        self._cooldowns[name] = expires_at

    def cooldown_remaining(self, name: str) -> float:
        """Seconds until `name` may act again (0 when ready)."""
        expires = self._cooldowns.get(name)
        if expires is None:
            return 0.0
        remaining = expires - time.time()
        if remaining <= 0:
            del self._cooldowns[name]
            return 0.0
        return remaining

    def is_on_cooldown(self, name: str) -> bool:
        return self.cooldown_remaining(name) > 0

    async def wait_for_cooldown(self, name: str) -> None:
        """Sleep until the character's tracked cooldown has expired."""
        remaining = self.cooldown_remaining(name)
        if remaining > 0:
            logger.debug("%s waiting %.1fs for cooldown", name, remaining)
            await asyncio.sleep(remaining + COOLDOWN_SLACK)

    def _track_cooldown(self, name: str, cooldown: dict[str, Any] | None) -> None:
        if not cooldown:
            return
        expires_at = _parse_timestamp(cooldown.get("expiration"))
        if expires_at is None:
            expires_at = time.time() + float(cooldown.get("remaining_seconds", 0))
        self.set_cooldown(name, expires_at)

    def _track_character_cooldown(self, character: dict[str, Any]) -> None:
        expires_at = _parse_timestamp(character.get("cooldown_expiration"))
        if expires_at is not None and expires_at > time.time():
            self.set_cooldown(character["name"], expires_at)

    # --- Transport ---

    def _request_sync(self, method: str, path: str, body: Any = None) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }
        attempt = 0
        while True:
            backoff = self._initial_backoff * (2**attempt)
            try:
                response = self._session.request(
                    method, url, headers=headers, json=body, timeout=REQUEST_TIMEOUT
                )
            except requests.RequestException:
                if attempt >= self._max_retries:
                    raise
                logger.warning("%s %s failed, retrying in %.1fs", method, path, backoff)
                time.sleep(backoff)
                attempt += 1
                continue

            status = response.status_code
            if (status == 429 or status >= 500) and attempt < self._max_retries:
                logger.warning(
                    "%s %s returned %d, retrying in %.1fs", method, path, status, backoff
                )
                time.sleep(backoff)
                attempt += 1
                continue

            try:
                payload = response.json()
            except ValueError:
                payload = {}

            if not response.ok:
                error = payload.get("error") or {}
                code = int(error.get("code", status))
                message = str(error.get("message", "Unknown error"))
                if code == ErrorCode.COOLDOWN:
                    self._track_cooldown_error(path, message)
                raise ApiRequestError(status, code, message, error.get("data"))

            return payload

    def _track_cooldown_error(self, path: str, message: str) -> None:
        seconds = _COOLDOWN_SECONDS.search(message)
        name = _CHARACTER_PATH.match(path)
        if seconds and name:
            self.set_cooldown(name.group(1), time.time() + float(seconds.group(1)))

    async def _request(self, method: str, path: str, body: Any = None) -> dict[str, Any]:
        return await asyncio.to_thread(self._request_sync, method, path, body)

    async def _get(self, path: str) -> dict[str, Any]:
        return await self._request("GET", path)

    async def _action(self, name: str, action: str, body: Any = None) -> dict[str, Any]:
        """POST a character action after waiting for its cooldown."""
        await self.wait_for_cooldown(name)
        payload = await self._request("POST", f"/my/{name}/action/{action}", body)
        data = payload.get("data", {})
        self._track_cooldown(name, data.get("cooldown"))
        return data

    @staticmethod
    def _to_result(data: dict[str, Any]) -> ActionResult:
        details = {k: v for k, v in data.items() if k not in ("character", "cooldown")}
        return ActionResult(
            character=CharacterState.model_validate(data["character"]),
            cooldown=Cooldown.model_validate(data.get("cooldown") or {}),
            details=details,
        )

    @staticmethod
    def _to_bank_result(data: dict[str, Any]) -> BankResult:
        details = {k: v for k, v in data.items() if k not in ("character", "cooldown", "bank")}
        bank = data.get("bank")
        return BankResult(
            character=CharacterState.model_validate(data["character"]),
            cooldown=Cooldown.model_validate(data.get("cooldown") or {}),
            bank=bank if isinstance(bank, list) else [],
            details=details,
        )

    # --- Characters ---

    async def get_my_characters(self) -> list[CharacterState]:
        payload = await self._get("/my/characters")
        characters = [CharacterState.model_validate(c) for c in payload.get("data", [])]
        for raw in payload.get("data", []):
            self._track_character_cooldown(raw)
        return characters

    async def get_character(self, name: str) -> CharacterState:
        payload = await self._get(f"/characters/{name}")
        self._track_character_cooldown(payload["data"])
        return CharacterState.model_validate(payload["data"])

    # --- Actions ---

    async def move(self, name: str, x: int, y: int) -> ActionResult:
        return self._to_result(await self._action(name, "move", {"x": x, "y": y}))

    async def rest(self, name: str) -> ActionResult:
        return self._to_result(await self._action(name, "rest"))

    async def gather(self, name: str) -> ActionResult:
        return self._to_result(await self._action(name, "gathering"))

    async def craft(self, name: str, code: str, quantity: int = 1) -> ActionResult:
        return self._to_result(
            await self._action(name, "crafting", {"code": code, "quantity": quantity})
        )

    async def fight(self, name: str, participants: list[str] | None = None) -> FightResult:
        body = {"participants": participants} if participants else None
        data = await self._action(name, "fight", body)
        fight = data.get("fight", {})
        characters = data.get("characters") or ([data["character"]] if "character" in data else [])
        for raw in characters:
            self._track_character_cooldown(raw)
        return FightResult(
            cooldown=Cooldown.model_validate(data.get("cooldown") or {}),
            result=fight.get("result", "loss"),
            turns=fight.get("turns", 0),
            opponent=fight.get("opponent", ""),
            character_results=fight.get("characters", []),
            characters=[CharacterState.model_validate(c) for c in characters],
        )

    async def equip(
        self, name: str, code: str, slot: str, quantity: int | None = None
    ) -> ActionResult:
        body: dict[str, Any] = {"code": code, "slot": slot}
        if quantity is not None:
            body["quantity"] = quantity
        return self._to_result(await self._action(name, "equip", body))

    async def unequip(self, name: str, slot: str) -> ActionResult:
        return self._to_result(await self._action(name, "unequip", {"slot": slot}))

    # --- Bank ---

    async def deposit_items(self, name: str, items: list[dict[str, Any]]) -> BankResult:
        return self._to_bank_result(await self._action(name, "bank/deposit/item", items))

    async def withdraw_items(self, name: str, items: list[dict[str, Any]]) -> BankResult:
        return self._to_bank_result(await self._action(name, "bank/withdraw/item", items))

    async def deposit_gold(self, name: str, quantity: int) -> ActionResult:
        data = await self._action(name, "bank/deposit/gold", {"quantity": quantity})
        return self._to_result(data)

    async def withdraw_gold(self, name: str, quantity: int) -> ActionResult:
        data = await self._action(name, "bank/withdraw/gold", {"quantity": quantity})
        return self._to_result(data)

    async def get_bank(self) -> dict[str, Any]:
        payload = await self._get("/my/bank")
        return payload.get("data", {})

    async def get_bank_items(self, page: int = 1, size: int = PAGE_SIZE) -> dict[str, Any]:
        return await self._get(f"/my/bank/items?page={page}&size={size}")

    # --- NPCs and grand exchange ---

    async def buy_npc(self, name: str, code: str, quantity: int = 1) -> ActionResult:
        return self._to_result(
            await self._action(name, "npc/buy", {"code": code, "quantity": quantity})
        )

    async def get_ge_orders(
        self, code: str | None = None, page: int = 1, size: int = PAGE_SIZE
    ) -> dict[str, Any]:
        path = f"/grandexchange/orders?page={page}&size={size}"
        if code:
            path += f"&code={code}"
        return await self._get(path)

    async def buy_ge(self, name: str, order_id: str, quantity: int) -> ActionResult:
        return self._to_result(
            await self._action(name, "grandexchange/buy", {"id": order_id, "quantity": quantity})
        )

    async def sell_ge(self, name: str, code: str, quantity: int, price: int) -> ActionResult:
        return self._to_result(
            await self._action(
                name, "grandexchange/sell", {"code": code, "quantity": quantity, "price": price}
            )
        )

    async def cancel_ge(self, name: str, order_id: str) -> ActionResult:
        return self._to_result(await self._action(name, "grandexchange/cancel", {"id": order_id}))

    # --- Tasks ---

    async def task_new(self, name: str) -> ActionResult:
        return self._to_result(await self._action(name, "task/new"))

    async def task_complete(self, name: str) -> ActionResult:
        return self._to_result(await self._action(name, "task/complete"))

    async def task_trade(self, name: str, code: str, quantity: int) -> ActionResult:
        return self._to_result(
            await self._action(name, "task/trade", {"code": code, "quantity": quantity})
        )

    async def task_cancel(self, name: str) -> ActionResult:
        return self._to_result(await self._action(name, "task/cancel"))

    async def task_exchange(self, name: str) -> ActionResult:
        return self._to_result(await self._action(name, "task/exchange"))

    # --- Simulation ---

    async def simulate_fight(
        self,
        characters: list[dict[str, Any]],
        monster: str,
        iterations: int = 100,
    ) -> SimulationResponse:
        payload = await self._request(
            "POST",
            "/simulation/fight_simulation",
            {"characters": characters, "monster": monster, "iterations": iterations},
        )
        return SimulationResponse.model_validate(payload.get("data", {}))

    # --- World data (paginated) ---

    async def get_maps(self, page: int = 1, size: int = PAGE_SIZE) -> dict[str, Any]:
        return await self._get(f"/maps?page={page}&size={size}")

    async def get_resources(self, page: int = 1, size: int = PAGE_SIZE) -> dict[str, Any]:
        return await self._get(f"/resources?page={page}&size={size}")

    async def get_monsters(self, page: int = 1, size: int = PAGE_SIZE) -> dict[str, Any]:
        return await self._get(f"/monsters?page={page}&size={size}")

    async def get_items(self, page: int = 1, size: int = PAGE_SIZE) -> dict[str, Any]:
        return await self._get(f"/items?page={page}&size={size}")

    async def get_npc_items(self, page: int = 1, size: int = PAGE_SIZE) -> dict[str, Any]:
        return await self._get(f"/npcs/items?page={page}&size={size}")

    async def get_tasks(self, page: int = 1, size: int = PAGE_SIZE) -> dict[str, Any]:
        return await self._get(f"/tasks/list?page={page}&size={size}")


async def fetch_all_pages(
    fetcher: Callable[[int], Awaitable[dict[str, Any]]],
) -> list[dict[str, Any]]:
    """Collect every page of a paginated listing endpoint."""
    first = await fetcher(1)
    items = list(first.get("data", []))
    pages = int(first.get("pages") or 1)
    for page in range(2, pages + 1):
        nxt = await fetcher(page)
        items.extend(nxt.get("data", []))
    return items
