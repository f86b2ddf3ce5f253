"""Shared test fixtures."""

import os

import pytest
from artifactsfleet import Board, FleetBusClient, GameData

from tests.factories import make_world


@pytest.fixture
def nats_url() -> str:
    return os.environ.get("NATS_URL", "nats://localhost:4222")


@pytest.fixture
async def bus_client(nats_url: str) -> FleetBusClient:
    """Provide a connected FleetBusClient, cleaned up after use."""
    client = FleetBusClient(nats_url)
    await client.connect()
    yield client  # type: ignore[misc]
    await client.close()


@pytest.fixture
def game_data() -> GameData:
    return make_world()


@pytest.fixture
def board() -> Board:
    return Board()
