"""Registry database engine management."""

import ssl
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.taskhive.core.config import get_settings

_engine: AsyncEngine | None = None


def _ssl_context(mode: str) -> ssl.SSLContext | None:
    """SSL context for a libpq-style sslmode; None when SSL is disabled."""
    if mode == "disable":
        return None
    context = ssl.create_default_context()
    if mode in ("verify-ca", "verify-full"):
        context.check_hostname = mode == "verify-full"
        context.verify_mode = ssl.CERT_REQUIRED
    else:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def get_connect_args(database_url: str) -> dict[str, Any]:
    """asyncpg connect arguments for the registry and every project database.

    Other drivers (aiosqlite in tests) take no extra arguments.
    """
    if make_url(database_url).drivername != "postgresql+asyncpg":
        return {}

    settings = get_settings()
    connect_args: dict[str, Any] = {
        "statement_cache_size": settings.database_statement_cache_size,
    }

    ssl_context = _ssl_context(settings.database_ssl_mode)
    if ssl_context is not None:
        connect_args["ssl"] = ssl_context
    return connect_args


def get_engine() -> AsyncEngine:
    """Get or create the registry engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            connect_args=get_connect_args(settings.database_url),
        )
    return _engine


async def dispose_engine() -> None:
    """Dispose the registry engine. Call during shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
