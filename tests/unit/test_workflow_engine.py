"""Tests for the workflow engine against a seeded project database."""

import asyncio
from uuid import uuid4

import pytest

from src.taskhive.core.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    OperationTimeoutError,
    TransitionConflictError,
)
from src.taskhive.models.enums import AuditOperation, StatusCategory
from src.taskhive.models.tenant.seed import (
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_IN_REVIEW,
    STATUS_TODO,
    seed_status_id,
)
from src.taskhive.schemas.sprint import SprintCreate
from src.taskhive.schemas.task import TaskCreate, TaskUpdate
from src.taskhive.services import workflow_graph
from src.taskhive.services.workflow_engine import WorkflowEngine
from src.taskhive.services.workflow_graph import TransitionPolicy
from tests.helpers import execute_sql

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]

TODO = seed_status_id(STATUS_TODO)
IN_PROGRESS = seed_status_id(STATUS_IN_PROGRESS)
IN_REVIEW = seed_status_id(STATUS_IN_REVIEW)
DONE = seed_status_id(STATUS_DONE)

LOAD_GRAPH = "src.taskhive.services.workflow_engine.load_workflow_graph"


async def new_task(engine: WorkflowEngine, namespace: str, **fields):
    return await engine.create_task(namespace, TaskCreate(title="Write report", **fields))


class TestWorkflowScenario:
    """Walks a task through the seeded workflow."""

    async def test_full_lifecycle(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant)
        assert task.status_id is None

        # Unset status may take any status
        result = await workflow_engine.apply_transition(tenant, task.id, TODO)
        assert result.status_name == STATUS_TODO

        # No direct edge To Do -> Done
        with pytest.raises(InvalidTransitionError) as exc_info:
            await workflow_engine.apply_transition(tenant, task.id, DONE)
        assert exc_info.value.from_status == STATUS_TODO
        assert exc_info.value.to_status == STATUS_DONE

        await workflow_engine.apply_transition(tenant, task.id, IN_PROGRESS)
        result = await workflow_engine.apply_transition(tenant, task.id, DONE)
        assert result.status_id == DONE
        assert result.status_category is StatusCategory.DONE
        assert result.task.status_id == DONE

        await workflow_engine.archive(tenant, task.id)
        with pytest.raises(InvalidStateError):
            await workflow_engine.apply_transition(tenant, task.id, TODO)

    async def test_rejected_transition_changes_nothing(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant, status_id=TODO)

        with pytest.raises(InvalidTransitionError):
            await workflow_engine.apply_transition(tenant, task.id, DONE)

        stored = await workflow_engine.get_task(tenant, task.id)
        assert stored.status_id == TODO
        history = await workflow_engine.get_task_history(tenant, task.id)
        assert [h.operation for h in history] == [AuditOperation.CREATE.value]


class TestApplyTransition:
    async def test_self_transition_is_allowed(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant, status_id=IN_REVIEW)

        result = await workflow_engine.apply_transition(tenant, task.id, IN_REVIEW)

        assert result.status_name == STATUS_IN_REVIEW
        assert result.status_category is StatusCategory.IN_PROGRESS

    async def test_unknown_task(self, workflow_engine, tenant):
        with pytest.raises(NotFoundError):
            await workflow_engine.apply_transition(tenant, uuid4(), TODO)

    async def test_unknown_target_status(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant, status_id=TODO)
        with pytest.raises(NotFoundError):
            await workflow_engine.apply_transition(tenant, task.id, uuid4())

    async def test_records_audit_entry(self, workflow_engine, tenant):
        actor_id = uuid4()
        task = await new_task(workflow_engine, tenant, status_id=TODO)

        await workflow_engine.apply_transition(tenant, task.id, IN_PROGRESS, actor_id)

        history = await workflow_engine.get_task_history(tenant, task.id)
        change = history[-1]
        assert change.operation == AuditOperation.STATUS_CHANGE.value
        assert change.changed_by == actor_id
        assert change.old == {"status_id": str(TODO)}
        assert change.new == {"status_id": str(IN_PROGRESS)}
        assert change.changed_fields == ["status_id"]

    async def test_workflow_edits_apply_to_next_operation(
        self, workflow_engine, provisioner, tenant
    ):
        task = await new_task(workflow_engine, tenant, status_id=TODO)
        await execute_sql(
            provisioner.path_for(tenant),
            "INSERT INTO status_transitions (id, from_status_id, to_status_id, created_at) "
            "VALUES (:id, :frm, :to, CURRENT_TIMESTAMP)",
            id=uuid4().hex,
            frm=TODO.hex,
            to=DONE.hex,
        )

        result = await workflow_engine.apply_transition(tenant, task.id, DONE)
        assert result.status_name == STATUS_DONE

    async def test_strict_policy_requires_edges(self, router, tenant):
        strict = WorkflowEngine(
            router,
            TransitionPolicy(allow_initial_assignment=False, allow_self_transition=False),
        )
        task = await new_task(strict, tenant)

        assert not await strict.validate_transition(tenant, None, TODO)
        with pytest.raises(InvalidTransitionError) as exc_info:
            await strict.apply_transition(tenant, task.id, TODO)
        assert exc_info.value.from_status == "Unknown"

    async def test_strict_policy_accepts_stored_self_edge(
        self, workflow_engine, router, provisioner, tenant
    ):
        strict = WorkflowEngine(
            router,
            TransitionPolicy(allow_initial_assignment=False, allow_self_transition=False),
        )
        task = await new_task(workflow_engine, tenant, status_id=TODO)
        assert not await strict.validate_transition(tenant, TODO, TODO)

        await execute_sql(
            provisioner.path_for(tenant),
            "INSERT INTO status_transitions (id, from_status_id, to_status_id, created_at) "
            "VALUES (:id, :frm, :to, CURRENT_TIMESTAMP)",
            id=uuid4().hex,
            frm=TODO.hex,
            to=TODO.hex,
        )

        assert await strict.validate_transition(tenant, TODO, TODO)
        result = await strict.apply_transition(tenant, task.id, TODO)
        assert result.task.status_id == TODO


class TestNoLostUpdates:
    """Two writers deciding from the same status: exactly one wins."""

    async def test_concurrent_change_is_detected(self, workflow_engine, tenant, monkeypatch):
        task = await new_task(workflow_engine, tenant, status_id=IN_PROGRESS)
        real_load = workflow_graph.load_workflow_graph
        raced = False

        async def load_after_competing_write(session):
            # The competing request commits after this one has read the task
            nonlocal raced
            if not raced:
                raced = True
                await workflow_engine.apply_transition(tenant, task.id, DONE)
            return await real_load(session)

        monkeypatch.setattr(LOAD_GRAPH, load_after_competing_write)

        with pytest.raises(TransitionConflictError) as exc_info:
            await workflow_engine.apply_transition(tenant, task.id, IN_REVIEW)

        error = exc_info.value
        assert error.retryable is True
        assert error.context["expected_status"] == STATUS_IN_PROGRESS
        assert error.context["current_status"] == STATUS_DONE

        stored = await workflow_engine.get_task(tenant, task.id)
        assert stored.status_id == DONE
        history = await workflow_engine.get_task_history(tenant, task.id)
        changes = [h for h in history if h.operation == AuditOperation.STATUS_CHANGE.value]
        assert len(changes) == 1
        assert changes[0].new == {"status_id": str(DONE)}

    async def test_archive_during_transition(self, workflow_engine, tenant, monkeypatch):
        task = await new_task(workflow_engine, tenant, status_id=TODO)
        real_load = workflow_graph.load_workflow_graph
        raced = False

        async def load_after_archive(session):
            nonlocal raced
            if not raced:
                raced = True
                await workflow_engine.archive(tenant, task.id)
            return await real_load(session)

        monkeypatch.setattr(LOAD_GRAPH, load_after_archive)

        with pytest.raises(InvalidStateError):
            await workflow_engine.apply_transition(tenant, task.id, IN_PROGRESS)
        assert (await workflow_engine.get_task(tenant, task.id)).status_id == TODO


class TestDeadlines:
    async def test_timeout_applies_nothing(self, workflow_engine, tenant, monkeypatch):
        task = await new_task(workflow_engine, tenant, status_id=TODO)
        real_load = workflow_graph.load_workflow_graph

        async def slow_load(session):
            graph = await real_load(session)
            await asyncio.sleep(1)
            return graph

        monkeypatch.setattr(LOAD_GRAPH, slow_load)

        with pytest.raises(OperationTimeoutError) as exc_info:
            await workflow_engine.apply_transition(tenant, task.id, IN_PROGRESS, timeout=0.05)
        assert exc_info.value.context["operation"] == "apply_transition"

        assert (await workflow_engine.get_task(tenant, task.id)).status_id == TODO
        handle = await workflow_engine.router.acquire(tenant)
        assert handle.tracker.in_flight_count == 0


class TestArchive:
    async def test_archive_keeps_status(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant, status_id=IN_PROGRESS)

        archived = await workflow_engine.archive(tenant, task.id)

        assert archived.archived is True
        assert archived.status_id == IN_PROGRESS

    async def test_archive_is_terminal(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant)
        await workflow_engine.archive(tenant, task.id)

        with pytest.raises(InvalidStateError):
            await workflow_engine.archive(tenant, task.id)
        with pytest.raises(InvalidStateError):
            await workflow_engine.update_task(tenant, task.id, TaskUpdate(title="Renamed"))

    @pytest.mark.parametrize("target", [TODO, IN_PROGRESS, IN_REVIEW, DONE])
    async def test_archived_task_rejects_every_target(self, workflow_engine, tenant, target):
        task = await new_task(workflow_engine, tenant, status_id=IN_PROGRESS)
        await workflow_engine.archive(tenant, task.id)

        with pytest.raises(InvalidStateError):
            await workflow_engine.apply_transition(tenant, task.id, target)

    async def test_archived_tasks_hidden_from_list(self, workflow_engine, tenant):
        kept = await new_task(workflow_engine, tenant)
        gone = await new_task(workflow_engine, tenant)
        await workflow_engine.archive(tenant, gone.id)

        assert [t.id for t in await workflow_engine.list_tasks(tenant)] == [kept.id]
        everything = await workflow_engine.list_tasks(tenant, include_archived=True)
        assert {t.id for t in everything} == {kept.id, gone.id}


class TestCreateAndUpdate:
    async def test_create_records_audit(self, workflow_engine, tenant):
        actor_id = uuid4()
        task = await workflow_engine.create_task(
            tenant, TaskCreate(title="Write report", priority=3), actor_id
        )

        assert task.created_by == actor_id
        history = await workflow_engine.get_task_history(tenant, task.id)
        assert history[0].operation == AuditOperation.CREATE.value
        assert history[0].new["title"] == "Write report"
        assert history[0].new["priority"] == 3

    async def test_create_with_unknown_status(self, workflow_engine, tenant):
        with pytest.raises(NotFoundError):
            await new_task(workflow_engine, tenant, status_id=uuid4())
        assert await workflow_engine.list_tasks(tenant) == []

    async def test_create_with_unknown_sprint(self, workflow_engine, tenant):
        with pytest.raises(NotFoundError):
            await new_task(workflow_engine, tenant, sprint_id=uuid4())

    async def test_create_in_completed_sprint(
        self, workflow_engine, sprint_service, project
    ):
        sprint = await sprint_service.create_sprint(project.id, SprintCreate(name="Sprint 1"))
        await sprint_service.start_sprint(project.id, sprint.id)
        await sprint_service.complete_sprint(project.id, sprint.id)

        with pytest.raises(InvalidStateError):
            await new_task(workflow_engine, project.namespace, sprint_id=sprint.id)

    async def test_update_fields(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant)

        updated = await workflow_engine.update_task(
            tenant, task.id, TaskUpdate(title="Final report", estimate=5)
        )

        assert updated.title == "Final report"
        assert updated.estimate == 5
        history = await workflow_engine.get_task_history(tenant, task.id)
        assert history[-1].operation == AuditOperation.UPDATE.value
        assert history[-1].changed_fields == ["estimate", "title"]
        assert history[-1].old == {"title": "Write report", "estimate": None}

    async def test_update_status_goes_through_validation(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant, status_id=TODO)

        with pytest.raises(InvalidTransitionError):
            await workflow_engine.update_task(
                tenant, task.id, TaskUpdate(title="Renamed", status_id=DONE)
            )

        stored = await workflow_engine.get_task(tenant, task.id)
        assert stored.title == "Write report"
        assert stored.status_id == TODO

    async def test_update_status_along_edge(self, workflow_engine, tenant):
        task = await new_task(workflow_engine, tenant, status_id=TODO)

        updated = await workflow_engine.update_task(
            tenant, task.id, TaskUpdate(status_id=IN_PROGRESS)
        )

        assert updated.status_id == IN_PROGRESS
        history = await workflow_engine.get_task_history(tenant, task.id)
        assert history[-1].operation == AuditOperation.STATUS_CHANGE.value

    async def test_history_of_unknown_task(self, workflow_engine, tenant):
        with pytest.raises(NotFoundError):
            await workflow_engine.get_task_history(tenant, uuid4())


class TestWorkflowGraphRead:
    async def test_seeded_graph(self, workflow_engine, tenant):
        graph = await workflow_engine.get_workflow_graph(tenant)

        assert {s.name for s in graph.statuses.values()} == {
            STATUS_TODO,
            STATUS_IN_PROGRESS,
            STATUS_IN_REVIEW,
            STATUS_DONE,
        }
        assert graph.category_of(IN_REVIEW) is StatusCategory.IN_PROGRESS
        assert [s.name for s in graph.successors(IN_PROGRESS)] == [
            STATUS_TODO,
            STATUS_IN_REVIEW,
            STATUS_DONE,
        ]

    async def test_validate_transition(self, workflow_engine, tenant):
        assert await workflow_engine.validate_transition(tenant, None, DONE)
        assert await workflow_engine.validate_transition(tenant, TODO, IN_PROGRESS)
        assert not await workflow_engine.validate_transition(tenant, TODO, DONE)
        with pytest.raises(NotFoundError):
            await workflow_engine.validate_transition(tenant, TODO, uuid4())
