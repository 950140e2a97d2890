"""Shared test helpers."""

from pathlib import Path

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from structlog.testing import CapturingLogger


def logged_events(cap_logger: CapturingLogger) -> list[str]:
    """Event names captured so far, in order."""
    return [call.kwargs["event"] for call in cap_logger.calls]


def logged(cap_logger: CapturingLogger, event: str) -> list[dict]:
    """Keyword arguments of every captured call with the given event name."""
    return [call.kwargs for call in cap_logger.calls if call.kwargs.get("event") == event]


async def execute_sql(database: Path, statement: str, **params) -> None:
    """Run one statement against a SQLite file outside the code under test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{database}")
    try:
        async with engine.begin() as conn:
            await conn.execute(text(statement), params)
    finally:
        await engine.dispose()
