"""Tests for fleet bootstrap — world loading, bank loading and agent construction."""

import pytest
from artifactsfleet import Board, FleetAgent

from agents.tasker.agent import TaskerAgent
from agents.tasker.strategy import task_focused
from services.coordinator.coordinator import Coordinator
from services.fleet.config import ConfigError, FleetConfig
from services.fleet.runner import build_fleet, connect_bus, load_bank, load_game_data
from tests.factories import (
    WORLD_ITEMS,
    WORLD_MAPS,
    WORLD_MONSTERS,
    WORLD_NPC_ITEMS,
    WORLD_RESOURCES,
    WORLD_TASKS,
    make_character,
)


def _paged(models, page: int, size: int = 5) -> dict:
    rows = [m.model_dump() for m in models]
    pages = max(1, -(-len(rows) // size))
    return {"data": rows[(page - 1) * size : page * size], "page": page, "pages": pages}


class _WorldApi:
    """Serves the shared test world through the paginated listing calls."""

    def __init__(self, names=("alice", "bob", "carol")) -> None:
        self._names = names

    async def get_maps(self, page: int = 1):
        return _paged(WORLD_MAPS, page)

    async def get_resources(self, page: int = 1):
        return _paged(WORLD_RESOURCES, page)

    async def get_monsters(self, page: int = 1):
        return _paged(WORLD_MONSTERS, page)

    async def get_items(self, page: int = 1):
        return _paged(WORLD_ITEMS, page)

    async def get_npc_items(self, page: int = 1):
        return _paged(WORLD_NPC_ITEMS, page)

    async def get_tasks(self, page: int = 1):
        return _paged(WORLD_TASKS, page)

    async def get_bank(self):
        return {"gold": 250, "slots": 50}

    async def get_bank_items(self, page: int = 1):
        return {"data": [{"code": "copper_ore", "quantity": 30}], "pages": 1}

    async def get_my_characters(self):
        return [make_character(name) for name in self._names]


class TestLoading:
    async def test_load_game_data(self):
        game_data = await load_game_data(_WorldApi())
        assert len(game_data.find_maps_with_resource("copper_rocks")) == 2
        assert game_data.get_monster("king_slime").type == "boss"
        assert game_data.get_item("copper_dagger").craft.items[0].code == "copper_bar"
        assert game_data.get_npc_item_for_product("apple").buy_price == 3
        assert game_data.get_task("copper_bar").type == "items"

    async def test_load_bank(self):
        board = Board()
        await load_bank(_WorldApi(), board)
        bank = board.get_snapshot().bank
        assert bank.gold == 250
        assert bank.quantity("copper_ore") == 30

    async def test_no_bus_without_url(self):
        assert await connect_bus(None) is None


class TestBuildFleet:
    async def test_one_agent_per_character(self, tmp_path):
        config = FleetConfig(api_token="tok", log_dir=str(tmp_path))
        agents = await build_fleet(config, _WorldApi(), FleetAgent, task_focused)
        assert [a.name for a in agents] == ["alice", "bob", "carol"]
        # Agents share one coordinator
        coordinators = {id(a._coordinator) for a in agents}
        assert len(coordinators) == 1
        assert isinstance(agents[0]._coordinator, Coordinator)

    async def test_character_filter(self, tmp_path):
        config = FleetConfig(api_token="tok", characters=["carol", "alice"], log_dir=str(tmp_path))
        agents = await build_fleet(config, _WorldApi(), TaskerAgent, task_focused)
        assert [a.name for a in agents] == ["alice", "carol"]
        assert all(isinstance(a, TaskerAgent) for a in agents)

    async def test_unknown_character(self, tmp_path):
        config = FleetConfig(api_token="tok", characters=["zed"], log_dir=str(tmp_path))
        with pytest.raises(ConfigError, match="zed"):
            await build_fleet(config, _WorldApi(), FleetAgent, task_focused)

    async def test_empty_account(self, tmp_path):
        config = FleetConfig(api_token="tok", log_dir=str(tmp_path))
        with pytest.raises(ConfigError):
            await build_fleet(config, _WorldApi(names=()), FleetAgent, task_focused)
