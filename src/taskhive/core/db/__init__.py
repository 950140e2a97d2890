"""Database utilities - registry engine, sessions, migrations, tenant routing."""

from src.taskhive.core.db.engine import dispose_engine, get_engine
from src.taskhive.core.db.migrations import run_migrations_async, run_migrations_sync
from src.taskhive.core.db.provisioner import (
    PoolSettings,
    PostgresTenantProvisioner,
    TenantDatabaseProvisioner,
)
from src.taskhive.core.db.router import (
    TenantHandle,
    TenantRouter,
    close_tenant_router,
    get_tenant_router,
)
from src.taskhive.core.db.session import get_session

__all__ = [
    # Engine
    "dispose_engine",
    "get_engine",
    # Session
    "get_session",
    # Migrations
    "run_migrations_async",
    "run_migrations_sync",
    # Tenant databases
    "PoolSettings",
    "PostgresTenantProvisioner",
    "TenantDatabaseProvisioner",
    "TenantHandle",
    "TenantRouter",
    "close_tenant_router",
    "get_tenant_router",
]
