"""Physical lifecycle of per-project databases."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from src.taskhive.core.db.engine import get_connect_args
from src.taskhive.core.db.migrations import run_migrations_sync
from src.taskhive.core.exceptions import DatabaseInUseError, ProvisioningFailedError
from src.taskhive.core.logging import get_logger
from src.taskhive.core.validators import database_name_for

logger = get_logger(__name__)

# PostgreSQL SQLSTATE codes
DUPLICATE_DATABASE = "42P04"
OBJECT_IN_USE = "55006"


@dataclass(frozen=True)
class PoolSettings:
    """Connection pool bounds for one project database."""

    pool_size: int = 10
    max_overflow: int = 0
    pool_timeout: float = 2.0
    pool_recycle: int = 1800


class TenantDatabaseProvisioner(ABC):
    """Creates, drops and connects to project databases.

    Implementations raise ProvisioningFailedError (``retryable`` for transient
    failures) and DatabaseInUseError when a drop is refused because sessions
    are still attached. ``create_database`` must leave nothing behind when it
    fails.
    """

    def __init__(self, prefix: str = "project_") -> None:
        self.prefix = prefix

    def database_name(self, namespace: str) -> str:
        return database_name_for(self.prefix, namespace)

    @abstractmethod
    async def database_exists(self, namespace: str) -> bool: ...

    @abstractmethod
    async def is_provisioned(self, namespace: str) -> bool:
        """True only once schema and seed are committed.

        A database left by an interrupted or failed create exists but is not
        provisioned.
        """

    @abstractmethod
    async def create_database(self, namespace: str) -> None:
        """Create the database and load the base schema and seed workflow."""

    @abstractmethod
    async def drop_database(self, namespace: str) -> None: ...

    @abstractmethod
    async def terminate_sessions(self, namespace: str) -> int:
        """Forcibly disconnect every session attached to the database."""

    @abstractmethod
    def create_engine(self, namespace: str, pool: PoolSettings) -> AsyncEngine: ...

    async def close(self) -> None:
        return None


def _sqlstate(error: DBAPIError) -> str | None:
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


class PostgresTenantProvisioner(TenantDatabaseProvisioner):
    """One PostgreSQL database per project, on the registry's server.

    DDL runs through an AUTOCOMMIT connection to the maintenance database
    (CREATE/DROP DATABASE cannot run inside a transaction). The base schema
    and seed come from the project-database Alembic migrations.
    """

    def __init__(
        self,
        database_url: str,
        *,
        admin_database: str = "postgres",
        prefix: str = "project_",
        migrate: Callable[[str], None] = run_migrations_sync,
    ) -> None:
        super().__init__(prefix)
        self._url = make_url(database_url)
        self._admin_database = admin_database
        self._migrate = migrate
        self._admin_engine: AsyncEngine | None = None
        self._cleanups: set[asyncio.Task[None]] = set()

    def _admin(self) -> AsyncEngine:
        if self._admin_engine is None:
            url = self._url.set(database=self._admin_database)
            self._admin_engine = create_async_engine(
                url,
                poolclass=NullPool,
                isolation_level="AUTOCOMMIT",
                connect_args=get_connect_args(url.render_as_string(hide_password=False)),
            )
        return self._admin_engine

    @staticmethod
    async def _quote(conn: AsyncConnection, database_name: str) -> str:
        quoted = await conn.scalar(text("SELECT quote_ident(:name)").bindparams(name=database_name))
        return str(quoted)

    async def database_exists(self, namespace: str) -> bool:
        database_name = self.database_name(namespace)
        try:
            async with self._admin().connect() as conn:
                found = await conn.scalar(
                    text("SELECT 1 FROM pg_database WHERE datname = :name").bindparams(
                        name=database_name
                    )
                )
        except SQLAlchemyError as e:
            raise ProvisioningFailedError(
                f"Could not check database {database_name}",
                retryable=True,
                namespace=namespace,
            ) from e
        return found is not None

    async def is_provisioned(self, namespace: str) -> bool:
        """Checks for the Alembic version row, written in the schema step's transaction."""
        if not await self.database_exists(namespace):
            return False
        url = self._url.set(database=self.database_name(namespace))
        engine = create_async_engine(
            url,
            poolclass=NullPool,
            connect_args=get_connect_args(url.render_as_string(hide_password=False)),
        )
        try:
            async with engine.connect() as conn:
                if await conn.scalar(text("SELECT to_regclass('alembic_version')")) is None:
                    return False
                versions = await conn.scalar(text("SELECT count(*) FROM alembic_version"))
        except SQLAlchemyError as e:
            raise ProvisioningFailedError(
                f"Could not inspect database {url.database}",
                retryable=True,
                namespace=namespace,
            ) from e
        finally:
            await engine.dispose()
        return bool(versions)

    async def create_database(self, namespace: str) -> None:
        database_name = self.database_name(namespace)
        try:
            async with self._admin().connect() as conn:
                quoted = await self._quote(conn, database_name)
                await conn.execute(text(f"CREATE DATABASE {quoted}"))
        except DBAPIError as e:
            if _sqlstate(e) == DUPLICATE_DATABASE:
                # Someone else owns this name; never roll back a database we did not create
                raise ProvisioningFailedError(
                    f"Database {database_name} already exists",
                    retryable=False,
                    namespace=namespace,
                ) from e
            raise ProvisioningFailedError(
                f"Could not create database {database_name}",
                retryable=True,
                namespace=namespace,
            ) from e
        except SQLAlchemyError as e:
            raise ProvisioningFailedError(
                f"Could not create database {database_name}",
                retryable=True,
                namespace=namespace,
            ) from e

        logger.info("Project database created", namespace=namespace, database=database_name)

        # The migration runs in a thread that cannot be interrupted; a cancelled
        # caller waits for it to stop and drops the database before unwinding
        migration = asyncio.ensure_future(asyncio.to_thread(self._migrate, database_name))
        try:
            await asyncio.shield(migration)
        except asyncio.CancelledError:
            logger.warning(
                "Provisioning cancelled during schema step, rolling back", namespace=namespace
            )
            await self._run_shielded(
                self._rollback_after_cancel(migration, namespace, database_name)
            )
            raise
        except Exception as e:
            await self._run_shielded(self._rollback(namespace, database_name))
            raise ProvisioningFailedError(
                f"Could not initialize schema for {database_name}",
                retryable=True,
                namespace=namespace,
            ) from e

        logger.info("Project database schema applied", namespace=namespace, database=database_name)

    async def _run_shielded(self, cleanup: Coroutine[Any, Any, None]) -> None:
        """Run cleanup to completion even if the awaiting task is cancelled again."""
        task = asyncio.ensure_future(cleanup)
        self._cleanups.add(task)
        task.add_done_callback(self._cleanups.discard)
        await asyncio.shield(task)

    async def _rollback_after_cancel(
        self, migration: asyncio.Future[None], namespace: str, database_name: str
    ) -> None:
        await asyncio.wait([migration])
        if migration.exception() is not None:
            logger.warning(
                "Schema step failed after provisioning was cancelled",
                namespace=namespace,
                error=str(migration.exception()),
            )
        try:
            await self._rollback(namespace, database_name)
        except ProvisioningFailedError:
            # Logged as orphaned; the next provisioning attempt replaces the database
            return

    async def _rollback(self, namespace: str, database_name: str) -> None:
        try:
            async with self._admin().connect() as conn:
                quoted = await self._quote(conn, database_name)
                await conn.execute(text(f"DROP DATABASE IF EXISTS {quoted}"))
        except SQLAlchemyError as e:
            logger.error(
                "Rollback of failed project database failed",
                namespace=namespace,
                database=database_name,
                orphaned=True,
                exc_info=e,
            )
            raise ProvisioningFailedError(
                f"Database {database_name} could not be rolled back",
                retryable=False,
                namespace=namespace,
                orphaned=True,
            ) from e
        logger.info("Rolled back failed project database", namespace=namespace)

    async def drop_database(self, namespace: str) -> None:
        database_name = self.database_name(namespace)
        try:
            async with self._admin().connect() as conn:
                quoted = await self._quote(conn, database_name)
                await conn.execute(text(f"DROP DATABASE IF EXISTS {quoted}"))
        except DBAPIError as e:
            if _sqlstate(e) == OBJECT_IN_USE:
                raise DatabaseInUseError(
                    f"Database {database_name} has attached sessions",
                    namespace=namespace,
                ) from e
            raise ProvisioningFailedError(
                f"Could not drop database {database_name}",
                retryable=True,
                namespace=namespace,
            ) from e
        except SQLAlchemyError as e:
            raise ProvisioningFailedError(
                f"Could not drop database {database_name}",
                retryable=True,
                namespace=namespace,
            ) from e

    async def terminate_sessions(self, namespace: str) -> int:
        database_name = self.database_name(namespace)
        async with self._admin().connect() as conn:
            terminated = await conn.scalar(
                text(
                    """
                    SELECT count(pg_terminate_backend(pid))
                    FROM pg_stat_activity
                    WHERE datname = :name AND pid <> pg_backend_pid()
                    """
                ).bindparams(name=database_name)
            )
        return int(terminated or 0)

    def create_engine(self, namespace: str, pool: PoolSettings) -> AsyncEngine:
        url = self._url.set(database=self.database_name(namespace))
        return create_async_engine(
            url,
            pool_size=pool.pool_size,
            max_overflow=pool.max_overflow,
            pool_timeout=pool.pool_timeout,
            pool_recycle=pool.pool_recycle,
            pool_pre_ping=True,
            connect_args=get_connect_args(url.render_as_string(hide_password=False)),
        )

    async def close(self) -> None:
        if self._cleanups:
            await asyncio.gather(*self._cleanups, return_exceptions=True)
        if self._admin_engine is not None:
            await self._admin_engine.dispose()
            self._admin_engine = None
