"""Watch Decisions — print every agent decision published on the fleet bus.

Run with: python scripts/watch_decisions.py [character]
Requires: NATS running and a fleet started with NATS_URL set
"""

import asyncio
import os
import signal
import sys
from datetime import datetime

from artifactsfleet import Envelope, FleetBusClient, Topics


def format_decision(envelope: Envelope) -> str:
    payload = envelope.payload
    goal = payload.get("goal", {})
    state = payload.get("state", {})
    details = ", ".join(f"{k}={v}" for k, v in goal.items() if k != "type")
    when = datetime.fromtimestamp(envelope.timestamp).strftime("%H:%M:%S")
    return (
        f"{when} {envelope.from_agent:<12} {goal.get('type', '?'):<14} {details}"
        f"  ({payload.get('reason', '')}; hp {state.get('hp', '?')}/{state.get('max_hp', '?')}"
        f" @ {state.get('x', '?')},{state.get('y', '?')})"
    )


async def main() -> None:
    nats_url = os.environ.get("NATS_URL", "nats://localhost:4222")
    topic = Topics.decisions(sys.argv[1]) if len(sys.argv) > 1 else Topics.all_decisions()
    client = FleetBusClient(nats_url)

    await client.connect()
    print(f"Connected to {nats_url}, watching {topic}")

    async def on_decision(envelope: Envelope) -> None:
        print(format_decision(envelope))

    await client.subscribe(topic, on_decision)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await stop.wait()
    await client.close()


if __name__ == "__main__":
    asyncio.run(main())
