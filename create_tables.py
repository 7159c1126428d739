"""
create_tables.py
----------------
One-shot script to create the CRM schema (companies, users, leads,
lead_property_interests, properties, apartments).
For production schema changes, use migrations instead.

Usage:
    python create_tables.py            # create missing tables
    python create_tables.py --drop     # drop everything first (local only)
"""

import asyncio
import sys

from sqlalchemy.ext.asyncio import create_async_engine

from estate_crm.core.config import settings
from estate_crm.core.logging import configure_logging, get_logger
from estate_crm.models import Base  # Imports all models so metadata is populated

logger = get_logger(__name__)


async def create_all_tables(drop: bool = False) -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            logger.warning("All tables dropped", env=settings.APP_ENV)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("All tables created", tables=sorted(Base.metadata.tables))


if __name__ == "__main__":
    configure_logging()
    asyncio.run(create_all_tables(drop="--drop" in sys.argv[1:]))
