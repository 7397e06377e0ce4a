from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from showtrackr.core.config import settings


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create a SQLAlchemy async engine from settings."""

    return create_async_engine(database_url or settings.database_url, echo=False, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a session bound to the application's engine."""

    async with request.app.state.sessionmaker() as session:
        yield session
