#!/usr/bin/env python3
"""Create the tables and load demo users, books and loans."""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.db import session as db_session
from app.db.base import Base
from app.services.seed import seed_database


async def main() -> None:
    async with db_session.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with db_session.get_session() as session:
        await seed_database(session)
    await db_session.engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level="INFO", format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    asyncio.run(main())
