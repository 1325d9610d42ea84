"""Create all tables. Development convenience; production uses migrations."""
from __future__ import annotations

import asyncio
import logging

from team_chat.infrastructure.db.base import Base
from team_chat.infrastructure.db import models  # noqa: F401  registers tables
from team_chat.infrastructure.db.session import engine

logger = logging.getLogger(__name__)


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(init_db())


if __name__ == "__main__":
    main()
