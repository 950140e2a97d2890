"""Shared database utilities for activities."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from src.taskhive.core.config import get_settings

_sync_engine: Engine | None = None

_SYNC_DRIVERS = {"postgresql+asyncpg": "postgresql+psycopg2", "sqlite+aiosqlite": "sqlite"}


def sync_database_url(database_url: str) -> str:
    """Swap an async driver for its blocking counterpart (asyncpg -> psycopg2)."""
    url = make_url(database_url)
    return url.set(
        drivername=_SYNC_DRIVERS.get(url.drivername, url.drivername)
    ).render_as_string(hide_password=False)


def get_sync_engine() -> Engine:
    """Get or create synchronous registry engine (singleton)."""
    global _sync_engine
    if _sync_engine is None:
        settings = get_settings()
        _sync_engine = create_engine(sync_database_url(settings.database_url), pool_pre_ping=True)
    return _sync_engine


def dispose_sync_engine() -> None:
    """Dispose of the sync engine (call on worker shutdown)."""
    global _sync_engine
    if _sync_engine is not None:
        _sync_engine.dispose()
        _sync_engine = None
