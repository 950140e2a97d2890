"""Shared repository plumbing for registry and project-database tables."""

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select
from sqlmodel.sql.expression import SelectOfScalar

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """Data access over one table keyed by a UUID ``id`` column.

    The session is bound to either the registry or a single project database;
    repositories never commit; the calling service owns the transaction.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession):
        self.session = session

    def _by_id(self, id: UUID) -> SelectOfScalar[ModelType]:
        return select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]

    async def get_by_id(self, id: UUID) -> ModelType | None:
        result = await self.session.execute(self._by_id(id))
        return result.scalar_one_or_none()

    async def refresh_by_id(self, id: UUID) -> ModelType | None:
        """Re-read a row, overwriting whatever this session already loaded for it."""
        result = await self.session.execute(
            self._by_id(id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        self.session.add(entity)
