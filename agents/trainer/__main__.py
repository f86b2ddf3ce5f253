"""Entry point: python -m agents.trainer"""

import asyncio
import logging

from services.fleet.config import load_config
from services.fleet.runner import run_fleet

from agents.trainer.agent import TrainerAgent
from agents.trainer.strategy import max_all_skills


async def main() -> None:
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    await run_fleet(config, TrainerAgent, max_all_skills)


if __name__ == "__main__":
    asyncio.run(main())
