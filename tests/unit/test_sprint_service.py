"""Tests for sprint lifecycle and sprint statistics."""

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.taskhive.core.exceptions import InvalidStateError, NotFoundError
from src.taskhive.models.enums import SprintState
from src.taskhive.models.tenant.seed import (
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_IN_REVIEW,
    STATUS_TODO,
    seed_status_id,
)
from src.taskhive.schemas.sprint import SprintCreate
from src.taskhive.schemas.task import TaskCreate
from src.taskhive.services.sprint_statistics import snapshot_options

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


async def add_task(task_service, project, sprint_id, status_name=None):
    status_id = seed_status_id(status_name) if status_name else None
    return await task_service.create_task(
        project.id, TaskCreate(title="Task", sprint_id=sprint_id, status_id=status_id)
    )


class TestSprintLifecycle:
    async def test_planned_active_completed(self, sprint_service, project):
        sprint = await sprint_service.create_sprint(
            project.id, SprintCreate(name="Sprint 1", goal="Ship it")
        )
        assert sprint.state == SprintState.PLANNED.value

        started = await sprint_service.start_sprint(project.id, sprint.id)
        assert started.state == SprintState.ACTIVE.value
        assert started.started_at is not None

        completed = await sprint_service.complete_sprint(project.id, sprint.id)
        assert completed.state == SprintState.COMPLETED.value
        assert completed.completed_at is not None

        stored = await sprint_service.get_sprint(project.id, sprint.id)
        assert stored.state == SprintState.COMPLETED.value

    async def test_cannot_complete_planned_sprint(self, sprint_service, project):
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))

        with pytest.raises(InvalidStateError):
            await sprint_service.complete_sprint(project.id, sprint.id)

    async def test_cannot_start_twice(self, sprint_service, project):
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))
        await sprint_service.start_sprint(project.id, sprint.id)

        with pytest.raises(InvalidStateError):
            await sprint_service.start_sprint(project.id, sprint.id)

    async def test_list_by_state(self, sprint_service, project):
        planned = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))
        active = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 2"))
        await sprint_service.start_sprint(project.id, active.id)

        assert len(await sprint_service.list_sprints(project.id)) == 2
        listed = await sprint_service.list_sprints(project.id, SprintState.PLANNED)
        assert [s.id for s in listed] == [planned.id]

    async def test_get_unknown_sprint(self, sprint_service, project):
        with pytest.raises(NotFoundError):
            await sprint_service.get_sprint(project.id, uuid4())

    async def test_unknown_project(self, sprint_service):
        with pytest.raises(NotFoundError):
            await sprint_service.create_sprint(uuid4(), SprintCreate(name="Sprint 1"))

    async def test_delete_planned_sprint_keeps_tasks(
        self, sprint_service, task_service, project
    ):
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))
        first = await add_task(task_service, project, sprint.id)
        await add_task(task_service, project, sprint.id)

        assert await sprint_service.delete_sprint(project.id, sprint.id) == 2

        with pytest.raises(NotFoundError):
            await sprint_service.get_sprint(project.id, sprint.id)
        task = await task_service.get_task(project.id, first.id)
        assert task.sprint_id is None

    async def test_delete_active_sprint_rejected(self, sprint_service, project):
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))
        await sprint_service.start_sprint(project.id, sprint.id)

        with pytest.raises(InvalidStateError):
            await sprint_service.delete_sprint(project.id, sprint.id)
        assert (await sprint_service.get_sprint(project.id, sprint.id)).id == sprint.id


class TestSprintStatistics:
    async def test_empty_sprint(self, sprint_service, project):
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))

        stats = await sprint_service.get_sprint_statistics(project.id, sprint.id)

        assert stats.total_tasks == 0
        assert stats.completion_rate == 0.0
        assert stats.by_status == {}

    async def test_counts_by_category(self, sprint_service, task_service, project):
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))
        await add_task(task_service, project, sprint.id)
        await add_task(task_service, project, sprint.id, STATUS_TODO)
        await add_task(task_service, project, sprint.id, STATUS_IN_PROGRESS)
        await add_task(task_service, project, sprint.id, STATUS_IN_REVIEW)
        await add_task(task_service, project, sprint.id, STATUS_DONE)
        await add_task(task_service, project, sprint.id, STATUS_DONE)
        archived = await add_task(task_service, project, sprint.id, STATUS_DONE)
        await task_service.archive_task(project.id, archived.id)
        # Outside the sprint
        await add_task(task_service, project, None, STATUS_DONE)

        stats = await sprint_service.get_sprint_statistics(project.id, sprint.id)

        assert stats.total_tasks == 6
        assert stats.completed_tasks == 2
        assert stats.in_progress_tasks == 2
        assert stats.todo_tasks == 2
        assert stats.completion_rate == pytest.approx(2 / 6)
        assert stats.by_status == {
            STATUS_TODO: 1,
            STATUS_IN_PROGRESS: 1,
            STATUS_IN_REVIEW: 1,
            STATUS_DONE: 2,
        }

    async def test_follows_status_changes(self, sprint_service, task_service, project):
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))
        task = await add_task(task_service, project, sprint.id, STATUS_IN_PROGRESS)

        await task_service.change_task_status(project.id, task.id, seed_status_id(STATUS_DONE))

        stats = await sprint_service.get_sprint_statistics(project.id, sprint.id)
        assert stats.completed_tasks == 1
        assert stats.completion_rate == 1.0

    async def test_unknown_sprint(self, sprint_service, project):
        with pytest.raises(NotFoundError):
            await sprint_service.get_sprint_statistics(project.id, uuid4())


class TestStatisticsSnapshot:
    async def test_postgres_reads_one_snapshot(self):
        assert snapshot_options("postgresql") == {"isolation_level": "REPEATABLE READ"}

    async def test_sqlite_keeps_default_isolation(self):
        assert snapshot_options("sqlite") == {}

    async def test_statistics_transaction_uses_snapshot_options(
        self, sprint_service, task_service, project, monkeypatch
    ):
        requested = []
        real_connection = AsyncSession.connection

        async def recording_connection(session, *args, **kwargs):
            requested.append(kwargs.get("execution_options"))
            return await real_connection(session, *args, **kwargs)

        monkeypatch.setattr(AsyncSession, "connection", recording_connection)
        monkeypatch.setattr(
            "src.taskhive.services.sprint_statistics.snapshot_options",
            lambda dialect_name: {"isolation_level": "SERIALIZABLE"},
        )
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))
        await add_task(task_service, project, sprint.id, STATUS_DONE)

        stats = await sprint_service.get_sprint_statistics(project.id, sprint.id)

        assert stats.completed_tasks == 1
        assert {"isolation_level": "SERIALIZABLE"} in requested
