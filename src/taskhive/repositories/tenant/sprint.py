"""Repository for sprints (project database)."""

from sqlmodel import select

from src.taskhive.models.tenant import Sprint
from src.taskhive.repositories.base import BaseRepository


class SprintRepository(BaseRepository[Sprint]):
    model = Sprint

    async def list_all(self, state: str | None = None) -> list[Sprint]:
        query = select(Sprint)
        if state is not None:
            query = query.where(Sprint.state == state)
        query = query.order_by(Sprint.created_at)  # type: ignore[arg-type]
        result = await self.session.execute(query)
        return list(result.scalars().all())
