"""Workflow engine - every task mutation inside a project database goes through here."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.taskhive.core.db.router import TenantRouter
from src.taskhive.core.deadlines import deadline
from src.taskhive.core.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    TransitionConflictError,
)
from src.taskhive.core.logging import get_logger
from src.taskhive.models.base import utc_now
from src.taskhive.models.enums import AuditOperation, SprintState, StatusCategory
from src.taskhive.models.tenant import Task, TaskAudit
from src.taskhive.repositories.tenant import SprintRepository, TaskAuditRepository, TaskRepository
from src.taskhive.schemas.task import TaskCreate, TaskUpdate
from src.taskhive.services.workflow_graph import (
    TransitionPolicy,
    WorkflowGraph,
    load_workflow_graph,
)

logger = get_logger(__name__)

_UPDATABLE_FIELDS = (
    "title",
    "description",
    "sprint_id",
    "assigned_to",
    "priority",
    "estimate",
    "due_at",
)


@dataclass(frozen=True)
class TransitionResult:
    """A task after a successful status change, with the status it moved to."""

    task: Task
    status_id: UUID
    status_name: str
    status_category: StatusCategory


def _audit_value(value: Any) -> Any:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, UUID):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


class WorkflowEngine:
    """Validates and applies task status transitions for one project database at a time.

    The status graph is read in the same transaction as the task, so edits to
    the workflow are visible to the next operation. Same-task writers are
    serialized by a row lock where the database has one and always by a
    compare-and-set on the status the decision was based on.
    """

    def __init__(
        self,
        router: TenantRouter,
        policy: TransitionPolicy | None = None,
        *,
        operation_timeout: float | None = None,
    ) -> None:
        self.router = router
        self.policy = policy or TransitionPolicy()
        self.operation_timeout = operation_timeout

    @asynccontextmanager
    async def _session(
        self, namespace: str, operation: str, timeout: float | None, **context: Any
    ) -> AsyncGenerator[AsyncSession]:
        seconds = self.operation_timeout if timeout is None else timeout
        async with deadline(seconds, operation, namespace=namespace, **context):
            async with self.router.session(namespace) as session:
                yield session

    # --- Reads ---

    async def get_workflow_graph(
        self, namespace: str, *, timeout: float | None = None
    ) -> WorkflowGraph:
        async with self._session(namespace, "get_workflow_graph", timeout) as session:
            return await load_workflow_graph(session)

    async def validate_transition(
        self,
        namespace: str,
        from_status_id: UUID | None,
        to_status_id: UUID,
        *,
        timeout: float | None = None,
    ) -> bool:
        """Whether a task in ``from_status_id`` may move to ``to_status_id``.

        Raises:
            NotFoundError: ``to_status_id`` is not a status of the project
        """
        graph = await self.get_workflow_graph(namespace, timeout=timeout)
        return graph.allows(from_status_id, to_status_id, self.policy)

    async def get_task(
        self, namespace: str, task_id: UUID, *, timeout: float | None = None
    ) -> Task:
        async with self._session(namespace, "get_task", timeout, task_id=task_id) as session:
            task = await TaskRepository(session).get_by_id(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found", task_id=task_id)
        return task

    async def list_tasks(
        self,
        namespace: str,
        *,
        sprint_id: UUID | None = None,
        include_archived: bool = False,
        timeout: float | None = None,
    ) -> list[Task]:
        async with self._session(namespace, "list_tasks", timeout) as session:
            return await TaskRepository(session).list_tasks(sprint_id, include_archived)

    async def get_task_history(
        self, namespace: str, task_id: UUID, *, timeout: float | None = None
    ) -> list[TaskAudit]:
        async with self._session(
            namespace, "get_task_history", timeout, task_id=task_id
        ) as session:
            if await TaskRepository(session).get_by_id(task_id) is None:
                raise NotFoundError(f"Task {task_id} not found", task_id=task_id)
            return await TaskAuditRepository(session).list_for_task(task_id)

    # --- Mutations ---

    async def create_task(
        self,
        namespace: str,
        data: TaskCreate,
        actor_id: UUID | None = None,
        *,
        timeout: float | None = None,
    ) -> Task:
        """Create a task. An initial status is checked as a transition from no status."""
        async with self._session(namespace, "create_task", timeout) as session:
            try:
                if data.status_id is not None:
                    graph = await load_workflow_graph(session)
                    target = graph.get_status(data.status_id)
                    if not graph.allows(None, data.status_id, self.policy):
                        raise InvalidTransitionError(graph.status_name(None), target.name)
                if data.sprint_id is not None:
                    await self._check_sprint(session, data.sprint_id)

                task = Task(**data.model_dump(), created_by=actor_id)
                session.add(task)
                await session.flush()
                self._audit(
                    session,
                    task.id,
                    AuditOperation.CREATE,
                    actor_id,
                    new={k: _audit_value(v) for k, v in data.model_dump().items()},
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info("Task created", namespace=namespace, task_id=str(task.id))
        return task

    async def update_task(
        self,
        namespace: str,
        task_id: UUID,
        data: TaskUpdate,
        actor_id: UUID | None = None,
        *,
        timeout: float | None = None,
    ) -> Task:
        """Update task fields. A status change is validated like ``apply_transition``."""
        changes = data.model_dump(exclude_unset=True)
        new_status_id = changes.pop("status_id", None)

        async with self._session(namespace, "update_task", timeout, task_id=task_id) as session:
            try:
                tasks = TaskRepository(session)
                task = await tasks.get_for_update(task_id)
                if task is None:
                    raise NotFoundError(f"Task {task_id} not found", task_id=task_id)
                if task.archived:
                    raise InvalidStateError("Cannot update archived task", task_id=task_id)

                if changes.get("sprint_id") is not None and changes["sprint_id"] != task.sprint_id:
                    await self._check_sprint(session, changes["sprint_id"])

                if new_status_id is not None and new_status_id != task.status_id:
                    await self._transition(session, task, new_status_id, actor_id)

                old: dict[str, Any] = {}
                new: dict[str, Any] = {}
                for field in _UPDATABLE_FIELDS:
                    if field in changes and changes[field] != getattr(task, field):
                        old[field] = _audit_value(getattr(task, field))
                        new[field] = _audit_value(changes[field])
                        setattr(task, field, changes[field])

                if new:
                    task.updated_at = utc_now()
                    self._audit(session, task.id, AuditOperation.UPDATE, actor_id, old=old, new=new)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return task

    async def apply_transition(
        self,
        namespace: str,
        task_id: UUID,
        to_status_id: UUID,
        actor_id: UUID | None = None,
        *,
        timeout: float | None = None,
    ) -> TransitionResult:
        """Move a task to ``to_status_id``.

        Raises:
            NotFoundError: the task or the target status does not exist
            InvalidStateError: the task is archived
            InvalidTransitionError: the workflow has no such edge
            TransitionConflictError: the task's status changed concurrently
            OperationTimeoutError: the deadline expired (nothing is written)
        """
        async with self._session(
            namespace, "apply_transition", timeout, task_id=task_id
        ) as session:
            try:
                task = await TaskRepository(session).get_for_update(task_id)
                if task is None:
                    raise NotFoundError(f"Task {task_id} not found", task_id=task_id)
                result = await self._transition(session, task, to_status_id, actor_id)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info(
            "Task status changed",
            namespace=namespace,
            task_id=str(task_id),
            status=result.status_name,
        )
        return result

    async def archive(
        self,
        namespace: str,
        task_id: UUID,
        actor_id: UUID | None = None,
        *,
        timeout: float | None = None,
    ) -> Task:
        """Archive a task. Terminal: archived tasks accept no further changes."""
        async with self._session(namespace, "archive", timeout, task_id=task_id) as session:
            try:
                tasks = TaskRepository(session)
                task = await tasks.get_for_update(task_id)
                if task is None:
                    raise NotFoundError(f"Task {task_id} not found", task_id=task_id)
                if task.archived or not await tasks.mark_archived(task_id, utc_now()):
                    raise InvalidStateError("Task is already archived", task_id=task_id)
                self._audit(
                    session,
                    task_id,
                    AuditOperation.ARCHIVE,
                    actor_id,
                    old={"archived": False},
                    new={"archived": True},
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info("Task archived", namespace=namespace, task_id=str(task_id))
        return task

    # --- Internals ---

    async def _transition(
        self,
        session: AsyncSession,
        task: Task,
        to_status_id: UUID,
        actor_id: UUID | None,
    ) -> TransitionResult:
        if task.archived:
            raise InvalidStateError("Cannot change status of archived task", task_id=task.id)

        graph = await load_workflow_graph(session)
        target = graph.get_status(to_status_id)
        from_status_id = task.status_id
        if not graph.allows(from_status_id, to_status_id, self.policy):
            raise InvalidTransitionError(
                graph.status_name(from_status_id), target.name, task_id=task.id
            )

        tasks = TaskRepository(session)
        if not await tasks.compare_and_set_status(task.id, from_status_id, to_status_id, utc_now()):
            current = await tasks.refresh_by_id(task.id)
            if current is None:
                raise NotFoundError(f"Task {task.id} not found", task_id=task.id)
            if current.archived:
                raise InvalidStateError("Cannot change status of archived task", task_id=task.id)
            raise TransitionConflictError(
                "Task status was changed by another request",
                task_id=task.id,
                expected_status=graph.status_name(from_status_id),
                current_status=graph.status_name(current.status_id),
            )

        self._audit(
            session,
            task.id,
            AuditOperation.STATUS_CHANGE,
            actor_id,
            old={"status_id": _audit_value(from_status_id)},
            new={"status_id": _audit_value(to_status_id)},
        )
        return TransitionResult(
            task=task,
            status_id=target.id,
            status_name=target.name,
            status_category=target.category,
        )

    @staticmethod
    async def _check_sprint(session: AsyncSession, sprint_id: UUID) -> None:
        sprint = await SprintRepository(session).get_by_id(sprint_id)
        if sprint is None:
            raise NotFoundError(f"Sprint {sprint_id} not found", sprint_id=sprint_id)
        if sprint.state == SprintState.COMPLETED.value:
            raise InvalidStateError("Cannot add tasks to a completed sprint", sprint_id=sprint_id)

    @staticmethod
    def _audit(
        session: AsyncSession,
        task_id: UUID,
        operation: AuditOperation,
        actor_id: UUID | None,
        *,
        old: dict[str, Any] | None = None,
        new: dict[str, Any] | None = None,
    ) -> None:
        session.add(
            TaskAudit(
                task_id=task_id,
                operation=operation.value,
                changed_by=actor_id,
                changed_fields=sorted((new or {}).keys()),
                old=old,
                new=new,
            )
        )
