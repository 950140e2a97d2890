"""Tenant registry - maps project ids to database namespaces."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from src.taskhive.core.db.session import get_session
from src.taskhive.core.exceptions import ConflictError, NotFoundError
from src.taskhive.core.logging import get_logger
from src.taskhive.core.validators import validate_namespace
from src.taskhive.models.base import utc_now
from src.taskhive.models.public import Project, ProjectStatus
from src.taskhive.repositories.public import ProjectRepository

logger = get_logger(__name__)


class TenantRegistry:
    """Registry of projects in the global database.

    Each operation runs in its own short transaction so no registry lock is
    held while a project database is being provisioned or dropped.
    """

    def __init__(self, engine: AsyncEngine | None = None) -> None:
        self._engine = engine

    async def create_project(
        self, name: str, description: str | None = None, owner_id: UUID | None = None
    ) -> Project:
        async with get_session(self._engine) as session:
            project = Project(name=name, description=description, owner_id=owner_id)
            ProjectRepository(session).add(project)
            try:
                await session.commit()
                await session.refresh(project)
            except Exception:
                await session.rollback()
                raise
        logger.info("Project registered", project_id=str(project.id))
        return project

    async def get_project(self, project_id: UUID) -> Project:
        async with get_session(self._engine) as session:
            project = await ProjectRepository(session).get_by_id(project_id)
        if project is None or project.is_deleted:
            raise NotFoundError(f"Project {project_id} not found", project_id=project_id)
        return project

    async def list_projects(self, owner_id: UUID | None = None) -> list[Project]:
        async with get_session(self._engine) as session:
            return await ProjectRepository(session).list_active(owner_id)

    async def resolve_namespace(self, project_id: UUID) -> str:
        """Namespace of a live project.

        Raises:
            NotFoundError: unknown project, project being deleted, or no
                namespace registered yet
        """
        project = await self.get_project(project_id)
        if project.namespace is None:
            raise NotFoundError(
                f"Project {project_id} has no database yet",
                project_id=project_id,
                status=project.status,
            )
        return project.namespace

    async def register_namespace(self, project_id: UUID, namespace: str) -> Project:
        """Bind ``namespace`` to the project. Allowed exactly once per project.

        Raises:
            NotFoundError: unknown project
            ConflictError: the project already has a namespace, or another
                project owns this one
        """
        validate_namespace(namespace)
        async with get_session(self._engine) as session:
            repo = ProjectRepository(session)
            try:
                if not await repo.set_namespace_if_unset(project_id, namespace):
                    project = await repo.get_by_id(project_id)
                    if project is None:
                        raise NotFoundError(
                            f"Project {project_id} not found", project_id=project_id
                        )
                    raise ConflictError(
                        f"Project {project_id} already has a namespace",
                        project_id=project_id,
                        namespace=project.namespace,
                    )
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError(
                    f"Namespace {namespace} is already registered",
                    project_id=project_id,
                    namespace=namespace,
                ) from e
            except Exception:
                await session.rollback()
                raise
            project = await repo.refresh_by_id(project_id)

        logger.info("Namespace registered", project_id=str(project_id), namespace=namespace)
        return project  # type: ignore[return-value]

    async def set_status(self, project_id: UUID, status: ProjectStatus) -> bool:
        """Set the provisioning status. Returns False if the project is gone."""
        async with get_session(self._engine) as session:
            repo = ProjectRepository(session)
            project = await repo.get_by_id(project_id)
            if project is None:
                return False
            project.status = status.value
            project.updated_at = utc_now()
            await session.commit()
        return True

    async def mark_deleting(self, project_id: UUID) -> str | None:
        """Stop the project from resolving and return its namespace.

        Idempotent: a project already marked keeps its original deleted_at.

        Raises:
            NotFoundError: unknown project
        """
        async with get_session(self._engine) as session:
            project = await ProjectRepository(session).get_by_id(project_id)
            if project is None:
                raise NotFoundError(f"Project {project_id} not found", project_id=project_id)
            if project.deleted_at is None:
                project.deleted_at = utc_now()
                project.status = ProjectStatus.DELETING.value
                project.updated_at = project.deleted_at
                await session.commit()
            return project.namespace

    async def release(self, project_id: UUID) -> bool:
        """Remove the project and its namespace. Idempotent.

        Returns:
            True if a record was removed, False if it was already gone
        """
        async with get_session(self._engine) as session:
            removed = await ProjectRepository(session).delete_by_id(project_id)
            await session.commit()
        if removed:
            logger.info("Project removed from registry", project_id=str(project_id))
        return removed
