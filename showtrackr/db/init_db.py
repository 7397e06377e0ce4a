import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

from showtrackr.db.models import Base
from showtrackr.db.session import create_engine


async def init_models(db_engine: AsyncEngine) -> None:
    """Create database tables."""

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _main() -> None:
    engine = create_engine()
    try:
        await init_models(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(_main())
