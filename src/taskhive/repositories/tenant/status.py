"""Repositories for the workflow graph tables (project database)."""

from sqlmodel import select

from src.taskhive.models.tenant import Status, StatusTransition, StatusType
from src.taskhive.repositories.base import BaseRepository


class StatusRepository(BaseRepository[Status]):
    model = Status

    async def list_all(self) -> list[Status]:
        result = await self.session.execute(
            select(Status).order_by(Status.position, Status.name)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def list_types(self) -> list[StatusType]:
        result = await self.session.execute(
            select(StatusType).order_by(StatusType.id)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def list_transitions(self) -> list[StatusTransition]:
        result = await self.session.execute(select(StatusTransition))
        return list(result.scalars().all())
