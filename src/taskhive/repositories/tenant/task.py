"""Repositories for tasks and their audit trail (project database)."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import update
from sqlmodel import select

from src.taskhive.models.tenant import Task, TaskAudit
from src.taskhive.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    model = Task

    async def get_for_update(self, task_id: UUID) -> Task | None:
        """Load a task with a row lock where the database supports one."""
        result = await self.session.execute(
            select(Task)
            .where(Task.id == task_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_tasks(
        self, sprint_id: UUID | None = None, include_archived: bool = False
    ) -> list[Task]:
        query = select(Task)
        if sprint_id is not None:
            query = query.where(Task.sprint_id == sprint_id)
        if not include_archived:
            query = query.where(Task.archived == False)  # noqa: E712
        query = query.order_by(Task.created_at)  # type: ignore[arg-type]
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def compare_and_set_status(
        self,
        task_id: UUID,
        expected_status_id: UUID | None,
        new_status_id: UUID,
        updated_at: datetime,
    ) -> bool:
        """Move a non-archived task to ``new_status_id`` only if it still has the expected status.

        Returns False when another writer got there first.
        """
        stmt = update(Task).where(Task.id == task_id, Task.archived == False)  # noqa: E712
        if expected_status_id is None:
            stmt = stmt.where(Task.status_id.is_(None))  # type: ignore[union-attr]
        else:
            stmt = stmt.where(Task.status_id == expected_status_id)
        result = await self.session.execute(
            stmt.values(status_id=new_status_id, updated_at=updated_at)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def mark_archived(self, task_id: UUID, updated_at: datetime) -> bool:
        result = await self.session.execute(
            update(Task)
            .where(Task.id == task_id, Task.archived == False)  # noqa: E712
            .values(archived=True, updated_at=updated_at)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def detach_sprint(self, sprint_id: UUID, updated_at: datetime) -> int:
        result = await self.session.execute(
            update(Task)
            .where(Task.sprint_id == sprint_id)
            .values(sprint_id=None, updated_at=updated_at)
        )
        return int(result.rowcount)  # type: ignore[attr-defined]


class TaskAuditRepository(BaseRepository[TaskAudit]):
    model = TaskAudit

    async def list_for_task(self, task_id: UUID) -> list[TaskAudit]:
        result = await self.session.execute(
            select(TaskAudit)
            .where(TaskAudit.task_id == task_id)
            .order_by(TaskAudit.changed_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())
