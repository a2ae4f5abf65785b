#!/usr/bin/env python3
"""
Schema Migration Script

Applies every migrations/*.sql file in name order. The SQL files use
IF NOT EXISTS / ON CONFLICT DO NOTHING, so running this repeatedly is safe.

Usage:
    python scripts/apply_migrations.py

Requirements:
    - Database connection configured (DATABASE_URL env var)
"""
import asyncio
import logging
from pathlib import Path

from studyquest.db.connection import db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


async def apply_migrations() -> int:
    """
    Apply all migration files inside one transaction each.

    Returns:
        Number of files applied
    """
    files = sorted(MIGRATIONS_DIR.glob("*.sql"))
    if not files:
        logger.warning(f"No migrations found in {MIGRATIONS_DIR}")
        return 0

    for path in files:
        logger.info(f"Applying {path.name}...")
        async with db.connection() as conn:
            async with conn.transaction():
                await conn.execute(path.read_text())
        logger.info(f"✅ {path.name} applied")

    return len(files)


async def main():
    await db.init_pool()
    try:
        applied = await apply_migrations()
        logger.info(f"Done: {applied} migration file(s) applied")
    finally:
        await db.close_pool()


if __name__ == "__main__":
    asyncio.run(main())
