"""Entry point: python -m services.fleet

Runs the strategy named by FLEET_STRATEGY.
"""

import asyncio
import logging

from agents.tasker.agent import TaskerAgent
from agents.tasker.strategy import task_focused
from agents.trainer.agent import TrainerAgent
from agents.trainer.strategy import max_all_skills

from services.fleet.config import load_config
from services.fleet.runner import run_fleet

FLEETS = {
    "trainer": (TrainerAgent, max_all_skills),
    "tasker": (TaskerAgent, task_focused),
}


async def main() -> None:
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    agent_class, strategy = FLEETS[config.strategy]
    logging.getLogger(__name__).info("Starting %s fleet", config.strategy)
    await run_fleet(config, agent_class, strategy)


if __name__ == "__main__":
    asyncio.run(main())
