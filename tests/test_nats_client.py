"""Integration tests for FleetBusClient. Requires NATS running."""

import asyncio

import pytest
from artifactsfleet import Envelope, FleetBusClient, RecordType, Topics, create_record

pytestmark = pytest.mark.integration


def _decision(name: str, goal: str) -> Envelope:
    return create_record(
        from_agent=name,
        topic=Topics.decisions(name),
        record_type=RecordType.DECISION,
        payload={"goal": {"type": goal}, "reason": "strategy decision"},
    )


class TestFleetBusClient:
    async def test_connect_and_disconnect(self, bus_client: FleetBusClient):
        assert bus_client.is_connected
        await bus_client.close()
        assert not bus_client.is_connected

    async def test_publish_and_subscribe(self, bus_client: FleetBusClient):
        received: list[Envelope] = []
        event = asyncio.Event()

        async def handler(env: Envelope) -> None:
            received.append(env)
            event.set()

        await bus_client.subscribe(Topics.decisions("alice"), handler)
        await asyncio.sleep(0.3)  # Let subscription settle

        await bus_client.publish(Topics.decisions("alice"), _decision("alice", "rest"))

        await asyncio.wait_for(event.wait(), timeout=5.0)
        assert received[0].from_agent == "alice"
        assert received[0].payload["goal"] == {"type": "rest"}

    async def test_wildcard_sees_every_character(self, bus_client: FleetBusClient):
        received: list[Envelope] = []
        done = asyncio.Event()

        async def handler(env: Envelope) -> None:
            received.append(env)
            if len(received) >= 3:
                done.set()

        await bus_client.subscribe(Topics.all_decisions(), handler)
        await asyncio.sleep(0.3)

        for name in ("alice", "bob", "carol"):
            await bus_client.publish(Topics.decisions(name), _decision(name, "gather"))

        await asyncio.wait_for(done.wait(), timeout=5.0)
        assert {env.from_agent for env in received} >= {"alice", "bob", "carol"}

    async def test_publish_requires_connection(self):
        client = FleetBusClient("nats://localhost:4222")
        with pytest.raises(RuntimeError):
            await client.publish(Topics.decisions("alice"), _decision("alice", "rest"))
