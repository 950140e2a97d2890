"""Per-project connection routing.

One pooled engine per namespace. Project lifecycle code provisions the
database on first acquisition; request sessions only ever open databases that
are already provisioned. Release drains in-flight work before the database is
dropped.
"""

import asyncio
import contextlib
import time
from collections import OrderedDict
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from src.taskhive.core.config import Settings, get_settings
from src.taskhive.core.db.provisioner import (
    PoolSettings,
    PostgresTenantProvisioner,
    TenantDatabaseProvisioner,
)
from src.taskhive.core.db.session import make_session_factory
from src.taskhive.core.deadlines import deadline
from src.taskhive.core.exceptions import (
    DatabaseDropFailedError,
    DatabaseInUseError,
    NotFoundError,
    OperationTimeoutError,
    ProvisioningFailedError,
    TenantUnavailableError,
)
from src.taskhive.core.logging import get_logger
from src.taskhive.core.tracking import InFlightTracker
from src.taskhive.core.validators import validate_namespace

logger = get_logger(__name__)

# Released namespaces remembered to fail fast; older ones fall back to the database check
RELEASED_HISTORY_SIZE = 4096


class TenantHandle:
    """Live connection to one project database, shared by every caller in the process."""

    def __init__(self, namespace: str, engine: AsyncEngine) -> None:
        self.namespace = namespace
        self.engine = engine
        self.tracker = InFlightTracker(namespace)
        self.last_used = time.monotonic()
        self.is_shrunk = False
        self.is_closed = False
        self._session_factory = make_session_factory(engine)

    def touch(self) -> None:
        self.last_used = time.monotonic()

    @property
    def is_idle(self) -> bool:
        return self.tracker.in_flight_count == 0

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Tracked session. Rejected once the handle starts draining.

        A session force-cancelled by a release surfaces as TenantUnavailableError.
        """
        if self.tracker.is_draining or self.is_closed:
            raise TenantUnavailableError(
                "Project database is being released", namespace=self.namespace
            )

        task = asyncio.current_task()
        try:
            async with self.tracker.track():
                self.touch()
                self.is_shrunk = False
                try:
                    async with self._session_factory() as session:
                        yield session
                finally:
                    self.touch()
        except asyncio.CancelledError as e:
            if task is not None and self.tracker.consume_forced_cancellation(task):
                task.uncancel()
                raise TenantUnavailableError(
                    "Operation cancelled because the project database is being released",
                    namespace=self.namespace,
                ) from e
            raise
        except PoolTimeoutError as e:
            raise OperationTimeoutError(
                "Timed out waiting for a project database connection",
                namespace=self.namespace,
            ) from e

    async def shrink(self) -> None:
        """Close pooled connections; the engine reconnects lazily on next use."""
        await self.engine.dispose()
        self.is_shrunk = True

    async def close(self) -> None:
        self.is_closed = True
        await self.engine.dispose()


class TenantRouter:
    """Maps namespaces to live handles.

    Concurrency: one ``asyncio.Lock`` per namespace serializes
    check-then-provision and release for that namespace only. The fast path
    (cached handle) takes no lock.
    """

    def __init__(
        self,
        provisioner: TenantDatabaseProvisioner,
        *,
        pool: PoolSettings | None = None,
        provisioning_max_attempts: int = 3,
        provisioning_initial_backoff: float = 0.5,
        provisioning_backoff_coefficient: float = 2.0,
        drain_timeout: float = 30.0,
        cancel_grace: float = 5.0,
        idle_window: float = 30.0,
        released_history: int = RELEASED_HISTORY_SIZE,
    ) -> None:
        self.provisioner = provisioner
        self.pool = pool or PoolSettings()
        self.provisioning_max_attempts = provisioning_max_attempts
        self.provisioning_initial_backoff = provisioning_initial_backoff
        self.provisioning_backoff_coefficient = provisioning_backoff_coefficient
        self.drain_timeout = drain_timeout
        self.cancel_grace = cancel_grace
        self.idle_window = idle_window
        self.released_history = released_history

        self._handles: dict[str, TenantHandle] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._releasing: set[str] = set()
        self._released: OrderedDict[str, None] = OrderedDict()
        self._reaper: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, provisioner: TenantDatabaseProvisioner
    ) -> "TenantRouter":
        return cls(
            provisioner,
            pool=PoolSettings(
                pool_size=settings.tenant_pool_size,
                max_overflow=settings.tenant_max_overflow,
                pool_timeout=settings.tenant_pool_timeout_seconds,
                pool_recycle=settings.tenant_pool_recycle_seconds,
            ),
            provisioning_max_attempts=settings.provisioning_max_attempts,
            provisioning_initial_backoff=settings.provisioning_initial_backoff_seconds,
            provisioning_backoff_coefficient=settings.provisioning_backoff_coefficient,
            drain_timeout=settings.tenant_drain_timeout_seconds,
            cancel_grace=settings.tenant_cancel_grace_seconds,
            idle_window=settings.tenant_idle_window_seconds,
        )

    def _lock_for(self, namespace: str) -> asyncio.Lock:
        return self._locks.setdefault(namespace, asyncio.Lock())

    def _remember_released(self, namespace: str) -> None:
        self._released[namespace] = None
        self._released.move_to_end(namespace)
        while len(self._released) > self.released_history:
            self._released.popitem(last=False)

    def _ensure_acquirable(self, namespace: str) -> None:
        if namespace in self._released:
            raise NotFoundError(
                f"Project database {namespace} has been released", namespace=namespace
            )
        if namespace in self._releasing:
            raise TenantUnavailableError(
                "Project database is being released", namespace=namespace
            )

    async def acquire(
        self, namespace: str, *, timeout: float | None = None, provision: bool = True
    ) -> TenantHandle:
        """Return the live handle for ``namespace``, provisioning the database on first use.

        Concurrent first calls provision exactly once and share one handle. A
        database left incomplete by an interrupted create is dropped and
        provisioned again. With ``provision=False`` a missing or incomplete
        database raises NotFoundError instead.

        Raises:
            ProvisioningFailedError: provisioning failed after bounded retries
            TenantUnavailableError: the namespace is being released
            NotFoundError: the namespace was released, or has no database and
                ``provision`` is False
            OperationTimeoutError: ``timeout`` expired
        """
        validate_namespace(namespace)
        self._ensure_acquirable(namespace)

        handle = self._handles.get(namespace)
        if handle is not None:
            handle.touch()
            return handle

        async with deadline(timeout, "acquire", namespace=namespace):
            async with self._lock_for(namespace):
                self._ensure_acquirable(namespace)
                handle = self._handles.get(namespace)
                if handle is not None:
                    handle.touch()
                    return handle

                if not await self.provisioner.is_provisioned(namespace):
                    if not provision:
                        raise NotFoundError(
                            f"Project database {namespace} does not exist", namespace=namespace
                        )
                    await self._provision(namespace)

                engine = self.provisioner.create_engine(namespace, self.pool)
                handle = TenantHandle(namespace, engine)
                self._handles[namespace] = handle
                logger.info("Project database handle opened", namespace=namespace)
                return handle

    async def _provision(self, namespace: str) -> None:
        if await self.provisioner.database_exists(namespace):
            logger.warning("Replacing incomplete project database", namespace=namespace)
            await self._drop(namespace)

        backoff = self.provisioning_initial_backoff
        for attempt in range(1, self.provisioning_max_attempts + 1):
            logger.info("Provisioning project database", namespace=namespace, attempt=attempt)
            try:
                await self.provisioner.create_database(namespace)
                logger.info("Project database provisioned", namespace=namespace, attempt=attempt)
                return
            except ProvisioningFailedError as e:
                if not e.retryable or attempt >= self.provisioning_max_attempts:
                    logger.error(
                        "Project database provisioning failed",
                        namespace=namespace,
                        attempt=attempt,
                        error=e.message,
                        **{k: v for k, v in e.context.items() if k != "namespace"},
                    )
                    raise
                logger.warning(
                    "Project database provisioning attempt failed, retrying",
                    namespace=namespace,
                    attempt=attempt,
                    backoff_seconds=backoff,
                    error=e.message,
                )
                await asyncio.sleep(backoff)
                backoff *= self.provisioning_backoff_coefficient

    @asynccontextmanager
    async def session(
        self, namespace: str, *, timeout: float | None = None
    ) -> AsyncGenerator[AsyncSession]:
        """Open a tracked session on an already provisioned project database."""
        handle = await self.acquire(namespace, timeout=timeout, provision=False)
        async with handle.session() as session:
            yield session

    async def release(self, namespace: str, *, drain_timeout: float | None = None) -> bool:
        """Drain, disconnect and drop the database behind ``namespace``.

        New acquisitions are rejected from the moment this is called. In-flight
        operations get ``drain_timeout`` seconds, then are cancelled. If the
        drop is refused because sessions are still attached, they are
        terminated and the drop is retried once.

        Returns:
            True if a database was dropped, False if there was nothing to drop
            (already released, or never provisioned).

        Raises:
            DatabaseDropFailedError: the retried drop failed as well
        """
        validate_namespace(namespace)
        if namespace in self._released:
            return False

        self._releasing.add(namespace)
        lock = self._lock_for(namespace)
        try:
            async with lock:
                if namespace in self._released:
                    return False

                handle = self._handles.pop(namespace, None)
                if handle is not None:
                    await self._quiesce(
                        handle, self.drain_timeout if drain_timeout is None else drain_timeout
                    )
                    await handle.close()

                dropped = await self._drop(namespace)
                self._remember_released(namespace)
                logger.info("Project database released", namespace=namespace, dropped=dropped)
                return dropped
        finally:
            self._releasing.discard(namespace)
            if namespace in self._released and self._locks.get(namespace) is lock:
                del self._locks[namespace]

    async def _quiesce(self, handle: TenantHandle, drain_timeout: float) -> None:
        await handle.tracker.start_draining()
        if await handle.tracker.wait_for_drain(drain_timeout):
            return

        handle.tracker.cancel_in_flight()
        if not await handle.tracker.wait_for_drain(self.cancel_grace):
            logger.warning(
                "Operations still running after forced cancellation",
                namespace=handle.namespace,
                in_flight=handle.tracker.in_flight_count,
            )

    async def _drop(self, namespace: str) -> bool:
        if not await self.provisioner.database_exists(namespace):
            logger.info("Project database already absent", namespace=namespace)
            return False

        try:
            await self.provisioner.drop_database(namespace)
            return True
        except DatabaseInUseError:
            terminated = await self.provisioner.terminate_sessions(namespace)
            logger.warning(
                "Terminated sessions blocking database drop",
                namespace=namespace,
                terminated=terminated,
            )

        try:
            await self.provisioner.drop_database(namespace)
        except ProvisioningFailedError as e:
            logger.error("Project database drop failed after retry", namespace=namespace)
            raise DatabaseDropFailedError(
                "Project database could not be dropped after terminating sessions",
                namespace=namespace,
            ) from e
        return True

    async def shrink_idle(self, *, now: float | None = None) -> list[str]:
        """Close pooled connections of handles idle longer than the idle window."""
        now = time.monotonic() if now is None else now
        shrunk: list[str] = []
        for namespace, handle in list(self._handles.items()):
            if handle.is_shrunk or not handle.is_idle:
                continue
            if now - handle.last_used < self.idle_window:
                continue
            await handle.shrink()
            shrunk.append(namespace)
        if shrunk:
            logger.debug("Shrunk idle project database pools", namespaces=shrunk)
        return shrunk

    def start_idle_reaper(self, interval: float) -> None:
        if self._reaper is None or self._reaper.done():
            self._reaper = asyncio.create_task(self._reap_idle(interval))

    async def _reap_idle(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.shrink_idle()
            except Exception:
                logger.exception("Idle pool reaper iteration failed")

    async def close(self) -> None:
        """Dispose every handle. Process shutdown only: nothing is dropped."""
        if self._reaper is not None:
            self._reaper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reaper
            self._reaper = None

        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            await handle.close()
        await self.provisioner.close()
        logger.info("Tenant router closed", handles=len(handles))

    def stats(self) -> dict[str, Any]:
        return {
            "handles": len(self._handles),
            "in_flight": {ns: h.tracker.in_flight_count for ns, h in self._handles.items()},
            "releasing": sorted(self._releasing),
        }


_router: TenantRouter | None = None


def get_tenant_router() -> TenantRouter:
    """Get or create the tenant router singleton."""
    global _router
    if _router is None:
        settings = get_settings()
        provisioner = PostgresTenantProvisioner(
            settings.database_url,
            admin_database=settings.database_admin_database,
            prefix=settings.tenant_database_prefix,
        )
        _router = TenantRouter.from_settings(settings, provisioner)
    return _router


async def close_tenant_router() -> None:
    """Close the tenant router. Call during shutdown."""
    global _router
    if _router is not None:
        await _router.close()
        _router = None
