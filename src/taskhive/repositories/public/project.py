"""Repository for the Project registry."""

from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import select

from src.taskhive.models.base import utc_now
from src.taskhive.models.public import Project
from src.taskhive.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project entity in the registry database."""

    model = Project

    async def get_by_namespace(self, namespace: str) -> Project | None:
        result = await self.session.execute(select(Project).where(Project.namespace == namespace))
        return result.scalar_one_or_none()

    async def list_active(self, owner_id: UUID | None = None) -> list[Project]:
        """List projects that are not being deleted, newest first."""
        query = select(Project).where(Project.deleted_at.is_(None))  # type: ignore[union-attr]
        if owner_id is not None:
            query = query.where(Project.owner_id == owner_id)
        query = query.order_by(Project.created_at.desc())  # type: ignore[attr-defined]
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def set_namespace_if_unset(self, project_id: UUID, namespace: str) -> bool:
        """Set the namespace only while it is still NULL. Returns False if it was already set."""
        result = await self.session.execute(
            update(Project)
            .where(Project.id == project_id)
            .where(Project.namespace.is_(None))  # type: ignore[union-attr]
            .values(namespace=namespace, updated_at=utc_now())
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def delete_by_id(self, project_id: UUID) -> bool:
        result = await self.session.execute(delete(Project).where(Project.id == project_id))
        return result.rowcount == 1  # type: ignore[attr-defined]
