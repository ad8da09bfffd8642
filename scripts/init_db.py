"""Script to initialize the database without running migrations."""

import asyncio

from sqlalchemy import text

from clinic_scheduler.database import engine
from clinic_scheduler.models import metadata


async def init_db() -> None:
    """Create all scheduling tables."""
    async with engine.begin() as conn:
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))
        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
