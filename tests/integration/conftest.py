"""Integration test fixtures for PostgreSQL-backed project databases.

These fixtures require a reachable PostgreSQL server (DATABASE_URL). Tests are
skipped when it is not available. Every database created here uses a
dedicated prefix and is dropped on teardown.
"""

import asyncio
from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from src.taskhive.core import db
from src.taskhive.core.config import get_settings
from src.taskhive.core.db import (
    PoolSettings,
    PostgresTenantProvisioner,
    TenantRouter,
    run_migrations_sync,
)
from src.taskhive.core.db.engine import get_connect_args
from src.taskhive.services import ProjectLifecycleService, TenantRegistry

TEST_PREFIX = "it_project_"


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Registry engine with registry migrations applied; skips without PostgreSQL."""
    await db.dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(
        settings.database_url,
        poolclass=NullPool,
        connect_args=get_connect_args(settings.database_url),
    )
    try:
        async with test_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        await test_engine.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")

    await asyncio.to_thread(run_migrations_sync, None)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def pg_provisioner(engine: AsyncEngine) -> AsyncGenerator[PostgresTenantProvisioner]:
    provisioner = PostgresTenantProvisioner(get_settings().database_url, prefix=TEST_PREFIX)
    created: list[str] = []
    original_create = provisioner.create_database

    async def create_and_remember(namespace: str) -> None:
        created.append(namespace)
        await original_create(namespace)

    provisioner.create_database = create_and_remember  # type: ignore[method-assign]
    yield provisioner

    for namespace in created:
        await provisioner.terminate_sessions(namespace)
        await provisioner.drop_database(namespace)
    await provisioner.close()


@pytest.fixture
async def pg_router(pg_provisioner: PostgresTenantProvisioner) -> AsyncGenerator[TenantRouter]:
    router = TenantRouter(
        pg_provisioner,
        pool=PoolSettings(pool_size=2, max_overflow=0, pool_timeout=2.0),
        provisioning_initial_backoff=0.1,
        drain_timeout=2.0,
        cancel_grace=2.0,
    )
    yield router
    await router.close()


@pytest.fixture
def pg_namespace() -> str:
    return uuid4().hex


@pytest.fixture
def pg_lifecycle(engine: AsyncEngine, pg_router: TenantRouter) -> ProjectLifecycleService:
    return ProjectLifecycleService(TenantRegistry(engine), pg_router)
