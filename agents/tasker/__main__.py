"""Entry point: python -m agents.tasker"""

import asyncio
import logging

from services.fleet.config import load_config
from services.fleet.runner import run_fleet

from agents.tasker.agent import TaskerAgent
from agents.tasker.strategy import task_focused


async def main() -> None:
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    await run_fleet(config, TaskerAgent, task_focused)


if __name__ == "__main__":
    asyncio.run(main())
