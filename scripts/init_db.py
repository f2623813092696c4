"""Create the task board tables (departments, users, projects, tasks)."""

import asyncio
import logging

from taskboard_reports.db.connection import dispose_engine, engine
from taskboard_reports.db.models import Base

logger = logging.getLogger("init_db")


async def init() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))
    await dispose_engine()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[init_db] %(message)s")
    asyncio.run(init())
