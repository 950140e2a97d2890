"""Database session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.taskhive.core.db.engine import get_engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def get_session(engine: AsyncEngine | None = None) -> AsyncGenerator[AsyncSession]:
    """Create a registry database session.

    Args:
        engine: Optional engine override for testing.

    Yields:
        AsyncSession bound to the registry database. Project data lives in
        separate databases reached through the tenant router.
    """
    if engine is None:
        engine = get_engine()

    async with make_session_factory(engine)() as session:
        yield session
