"""Sprint statistics - read-side aggregation over a sprint's tasks."""

from collections import Counter
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.taskhive.core.db.router import TenantRouter
from src.taskhive.core.deadlines import deadline
from src.taskhive.core.exceptions import NotFoundError
from src.taskhive.models.enums import StatusCategory
from src.taskhive.repositories.tenant import SprintRepository, TaskRepository
from src.taskhive.services.workflow_graph import WorkflowGraph, load_workflow_graph


@dataclass(frozen=True)
class SprintStatisticsResult:
    sprint_id: UUID
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    todo_tasks: int
    by_status: dict[str, int] = field(default_factory=dict)
    completion_rate: float = 0.0


def summarize(
    sprint_id: UUID, status_ids: list[UUID | None], graph: WorkflowGraph
) -> SprintStatisticsResult:
    """Classify tasks by their status category.

    Tasks without a status (or with one no longer in the graph) count as
    to-do. ``completion_rate`` is 0.0 for an empty sprint.
    """
    categories = Counter(graph.category_of(status_id) for status_id in status_ids)
    by_status = Counter(
        graph.status_name(status_id)
        for status_id in status_ids
        if status_id is not None and graph.has_status(status_id)
    )
    total = len(status_ids)
    completed = categories[StatusCategory.DONE]
    return SprintStatisticsResult(
        sprint_id=sprint_id,
        total_tasks=total,
        completed_tasks=completed,
        in_progress_tasks=categories[StatusCategory.IN_PROGRESS],
        todo_tasks=categories[StatusCategory.TODO],
        by_status=dict(by_status),
        completion_rate=completed / total if total else 0.0,
    )


def snapshot_options(dialect_name: str) -> dict[str, str]:
    """Execution options that make every read in a transaction see one snapshot.

    PostgreSQL's default READ COMMITTED takes a new snapshot per statement.
    SQLite holds its read lock for the whole transaction already.
    """
    if dialect_name == "postgresql":
        return {"isolation_level": "REPEATABLE READ"}
    return {}


async def _begin_snapshot(session: AsyncSession) -> None:
    options = snapshot_options(session.get_bind().dialect.name)
    if options:
        await session.connection(execution_options=options)


class SprintStatistics:
    """Computes statistics for one sprint inside a project database."""

    def __init__(self, router: TenantRouter, *, operation_timeout: float | None = None) -> None:
        self.router = router
        self.operation_timeout = operation_timeout

    async def compute_statistics(
        self, namespace: str, sprint_id: UUID, *, timeout: float | None = None
    ) -> SprintStatisticsResult:
        """Statistics over the sprint's non-archived tasks.

        Tasks and the status graph are read from one snapshot of the project database.

        Raises:
            NotFoundError: the sprint does not exist
        """
        seconds = self.operation_timeout if timeout is None else timeout
        async with deadline(
            seconds, "compute_statistics", namespace=namespace, sprint_id=sprint_id
        ):
            async with self.router.session(namespace) as session:
                async with session.begin():
                    await _begin_snapshot(session)
                    sprint = await SprintRepository(session).get_by_id(sprint_id)
                    if sprint is None:
                        raise NotFoundError(f"Sprint {sprint_id} not found", sprint_id=sprint_id)
                    tasks = await TaskRepository(session).list_tasks(sprint_id=sprint_id)
                    graph = await load_workflow_graph(session)

        return summarize(sprint_id, [task.status_id for task in tasks], graph)
