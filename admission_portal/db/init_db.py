"""
Create all tables from the ORM metadata. Safe to re-run: existing tables are left as they are.

  python -m admission_portal.db.init_db
"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

# Imported for their side effect of registering tables on Base.metadata
from admission_portal.auth import models as auth_models  # noqa: F401
from admission_portal.core import models as core_models  # noqa: F401
from admission_portal.core.logging import configure_logging
from admission_portal.db.session import Base, engine

logger = logging.getLogger(__name__)


async def create_tables(bind: AsyncEngine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


async def main() -> None:
    configure_logging()
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
