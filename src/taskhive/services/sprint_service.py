"""Sprint service - sprint lifecycle and statistics for a project."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.taskhive.core.db.router import TenantRouter
from src.taskhive.core.deadlines import deadline
from src.taskhive.core.exceptions import InvalidStateError, NotFoundError
from src.taskhive.core.logging import bind_tenant_context, get_logger
from src.taskhive.models.base import utc_now
from src.taskhive.models.enums import SprintState
from src.taskhive.models.tenant import Sprint
from src.taskhive.repositories.tenant import SprintRepository, TaskRepository
from src.taskhive.schemas.sprint import SprintCreate
from src.taskhive.services.sprint_statistics import SprintStatistics, SprintStatisticsResult
from src.taskhive.services.tenant_registry import TenantRegistry

logger = get_logger(__name__)


class SprintService:
    """Sprint operations addressed by project id.

    Lifecycle is planned -> active -> completed. Only planned sprints can be
    deleted; their tasks stay in the backlog.
    """

    def __init__(
        self,
        registry: TenantRegistry,
        router: TenantRouter,
        *,
        operation_timeout: float | None = None,
    ) -> None:
        self.registry = registry
        self.router = router
        self.operation_timeout = operation_timeout
        self.statistics = SprintStatistics(router, operation_timeout=operation_timeout)

    async def _namespace(self, project_id: UUID) -> str:
        namespace = await self.registry.resolve_namespace(project_id)
        bind_tenant_context(project_id, namespace)
        return namespace

    async def create_sprint(self, project_id: UUID, data: SprintCreate) -> Sprint:
        namespace = await self._namespace(project_id)
        async with deadline(self.operation_timeout, "create_sprint", namespace=namespace):
            async with self.router.session(namespace) as session:
                sprint = Sprint(**data.model_dump())
                SprintRepository(session).add(sprint)
                await self._commit(session)
        logger.info("Sprint created", sprint_id=str(sprint.id))
        return sprint

    async def list_sprints(
        self, project_id: UUID, state: SprintState | None = None
    ) -> list[Sprint]:
        namespace = await self._namespace(project_id)
        async with deadline(self.operation_timeout, "list_sprints", namespace=namespace):
            async with self.router.session(namespace) as session:
                return await SprintRepository(session).list_all(state.value if state else None)

    async def get_sprint(self, project_id: UUID, sprint_id: UUID) -> Sprint:
        namespace = await self._namespace(project_id)
        async with deadline(self.operation_timeout, "get_sprint", namespace=namespace):
            async with self.router.session(namespace) as session:
                return await self._load(session, sprint_id)

    async def start_sprint(self, project_id: UUID, sprint_id: UUID) -> Sprint:
        """Move a planned sprint to active."""
        return await self._advance(project_id, sprint_id, SprintState.PLANNED, SprintState.ACTIVE)

    async def complete_sprint(self, project_id: UUID, sprint_id: UUID) -> Sprint:
        """Move an active sprint to completed."""
        return await self._advance(
            project_id, sprint_id, SprintState.ACTIVE, SprintState.COMPLETED
        )

    async def delete_sprint(self, project_id: UUID, sprint_id: UUID) -> int:
        """Delete a planned sprint. Returns the number of tasks moved back to the backlog."""
        namespace = await self._namespace(project_id)
        async with deadline(self.operation_timeout, "delete_sprint", namespace=namespace):
            async with self.router.session(namespace) as session:
                sprint = await self._load(session, sprint_id)
                if sprint.state != SprintState.PLANNED.value:
                    raise InvalidStateError(
                        "Only planned sprints can be deleted",
                        sprint_id=sprint_id,
                        state=sprint.state,
                    )
                try:
                    detached = await TaskRepository(session).detach_sprint(sprint_id, utc_now())
                    await session.delete(sprint)
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        logger.info("Sprint deleted", sprint_id=str(sprint_id), detached_tasks=detached)
        return detached

    async def get_sprint_statistics(
        self, project_id: UUID, sprint_id: UUID
    ) -> SprintStatisticsResult:
        namespace = await self._namespace(project_id)
        return await self.statistics.compute_statistics(namespace, sprint_id)

    async def _advance(
        self, project_id: UUID, sprint_id: UUID, expected: SprintState, target: SprintState
    ) -> Sprint:
        namespace = await self._namespace(project_id)
        async with deadline(self.operation_timeout, f"{target.value}_sprint", namespace=namespace):
            async with self.router.session(namespace) as session:
                sprint = await self._load(session, sprint_id)
                if sprint.state != expected.value:
                    raise InvalidStateError(
                        f"Cannot move sprint from {sprint.state} to {target.value}",
                        sprint_id=sprint_id,
                        state=sprint.state,
                    )
                now = utc_now()
                sprint.state = target.value
                if target is SprintState.ACTIVE:
                    sprint.started_at = now
                else:
                    sprint.completed_at = now
                await self._commit(session)
        logger.info("Sprint state changed", sprint_id=str(sprint_id), state=target.value)
        return sprint

    @staticmethod
    async def _load(session: AsyncSession, sprint_id: UUID) -> Sprint:
        sprint = await SprintRepository(session).get_by_id(sprint_id)
        if sprint is None:
            raise NotFoundError(f"Sprint {sprint_id} not found", sprint_id=sprint_id)
        return sprint

    @staticmethod
    async def _commit(session: AsyncSession) -> None:
        try:
            await session.commit()
        except Exception:
            await session.rollback()
            raise
