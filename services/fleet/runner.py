"""Fleet bootstrap — load the world, build one agent per character, run them together."""

import asyncio
import logging
import signal

from artifactsfleet import (
    Board,
    FleetAgent,
    FleetBusClient,
    GameApiClient,
    GameData,
    GameMap,
    Item,
    Monster,
    NpcItem,
    Resource,
    SimpleItem,
    Strategy,
    TaskDefinition,
    fetch_all_pages,
)

from services.combat.simulator import FightSimulator
from services.coordinator.coordinator import Coordinator
from services.fleet.config import ConfigError, FleetConfig

logger = logging.getLogger(__name__)

# Seconds agents get to finish their current tick after a shutdown signal
SHUTDOWN_GRACE = 30.0


async def load_game_data(api: GameApiClient) -> GameData:
    """Fetch every page of the static world listings and index them."""
    maps, resources, monsters, items, npc_items, tasks = await asyncio.gather(
        fetch_all_pages(api.get_maps),
        fetch_all_pages(api.get_resources),
        fetch_all_pages(api.get_monsters),
        fetch_all_pages(api.get_items),
        fetch_all_pages(api.get_npc_items),
        fetch_all_pages(api.get_tasks),
    )
    game_data = GameData()
    game_data.load(
        [GameMap.model_validate(m) for m in maps],
        [Resource.model_validate(r) for r in resources],
        [Monster.model_validate(m) for m in monsters],
        [Item.model_validate(i) for i in items],
    )
    game_data.load_npc_items([NpcItem.model_validate(n) for n in npc_items])
    game_data.load_tasks([TaskDefinition.model_validate(t) for t in tasks])
    logger.info(
        "Game data loaded: %d maps, %d resources, %d monsters, %d items, %d NPC items, %d tasks",
        len(maps),
        len(resources),
        len(monsters),
        len(items),
        len(npc_items),
        len(tasks),
    )
    return game_data


async def load_bank(api: GameApiClient, board: Board) -> None:
    details = await api.get_bank()
    items = await fetch_all_pages(api.get_bank_items)
    board.update_bank([SimpleItem.model_validate(i) for i in items], int(details.get("gold", 0)))
    logger.info("Bank loaded: %d item stacks, %d gold", len(items), details.get("gold", 0))


async def connect_bus(url: str | None) -> FleetBusClient | None:
    """Connect the decision bus; the fleet runs without one when it is unreachable."""
    if not url:
        return None
    bus = FleetBusClient(url)
    try:
        await bus.connect()
    except Exception:
        logger.warning("Decision bus at %s unreachable, publishing disabled", url, exc_info=True)
        return None
    return bus


async def build_fleet(
    config: FleetConfig,
    api: GameApiClient,
    agent_class: type[FleetAgent],
    strategy: Strategy,
    *,
    bus: FleetBusClient | None = None,
) -> list[FleetAgent]:
    """Create the shared board, world data, simulator and coordinator, then the agents."""
    board = Board()
    game_data = await load_game_data(api)
    await load_bank(api, board)

    characters = await api.get_my_characters()
    names = [c.name for c in characters]
    if config.characters:
        unknown = sorted(set(config.characters) - set(names))
        if unknown:
            raise ConfigError(f"Characters not on this account: {', '.join(unknown)}")
        names = [n for n in names if n in config.characters]
    if not names:
        raise ConfigError("No characters found; create characters first")
    logger.info("Running %d characters: %s", len(names), ", ".join(names))

    simulator = FightSimulator(api)
    coordinator = Coordinator(
        board,
        game_data,
        strategy,
        character_names=names if config.pipeline else None,
        simulator=simulator,
    )
    return [
        agent_class(
            name,
            api,
            board,
            game_data,
            coordinator=coordinator,
            strategy=strategy,
            simulator=simulator,
            bus=bus,
            log_dir=config.log_dir,
        )
        for name in names
    ]


async def run_fleet(
    config: FleetConfig,
    agent_class: type[FleetAgent],
    strategy: Strategy,
) -> None:
    """Run every agent until SIGINT or SIGTERM, then let current ticks finish."""
    api = GameApiClient(config.api_token, config.api_url)
    bus = await connect_bus(config.nats_url)
    agents = await build_fleet(config, api, agent_class, strategy, bus=bus)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    tasks = [asyncio.create_task(agent.run(), name=f"agent-{agent.name}") for agent in agents]
    logger.info("Fleet is running. Press Ctrl+C to stop.")

    await stop_event.wait()
    for agent in agents:
        agent.stop()
    _, pending = await asyncio.wait(tasks, timeout=SHUTDOWN_GRACE)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)

    if bus is not None:
        await bus.close()
    logger.info("Fleet stopped")
