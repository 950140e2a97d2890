"""Reusable migration runner for both production and tests."""

import asyncio

from alembic.config import Config

from alembic import command


def run_migrations_sync(database_name: str | None = None) -> None:
    """Run Alembic migrations synchronously.

    Args:
        database_name: If provided, runs project-database migrations against
                      that database. If None, runs registry migrations.
    """
    alembic_cfg = Config("alembic.ini")
    if database_name:
        command.upgrade(alembic_cfg, "head", tag=database_name)
    else:
        command.upgrade(alembic_cfg, "head")


async def run_migrations_async(database_name: str | None = None) -> None:
    """Run Alembic migrations from async context.

    Alembic's env.py is synchronous, so it runs in a worker thread.
    """
    await asyncio.to_thread(run_migrations_sync, database_name)
