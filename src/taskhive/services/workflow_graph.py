"""In-memory snapshot of a project's status workflow."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Self
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.taskhive.core.config import Settings
from src.taskhive.core.exceptions import NotFoundError
from src.taskhive.models.enums import StatusCategory
from src.taskhive.repositories.tenant import StatusRepository


@dataclass(frozen=True)
class TransitionPolicy:
    """Rules applied before the edge lookup.

    Attributes:
        allow_initial_assignment: a task with no status may take any status
        allow_self_transition: moving a task to its current status is accepted
    """

    allow_initial_assignment: bool = True
    allow_self_transition: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(
            allow_initial_assignment=settings.workflow_allow_initial_assignment,
            allow_self_transition=settings.workflow_allow_self_transition,
        )


@dataclass(frozen=True)
class StatusNode:
    id: UUID
    name: str
    type_id: int
    category: StatusCategory
    position: int = 0


@dataclass(frozen=True)
class WorkflowGraph:
    """Statuses and allowed edges of one project, loaded fresh per operation."""

    statuses: Mapping[UUID, StatusNode]
    edges: frozenset[tuple[UUID, UUID]] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls, statuses: Iterable[StatusNode], edges: Iterable[tuple[UUID, UUID]]
    ) -> Self:
        return cls(statuses={s.id: s for s in statuses}, edges=frozenset(edges))

    def has_status(self, status_id: UUID) -> bool:
        return status_id in self.statuses

    def get_status(self, status_id: UUID) -> StatusNode:
        try:
            return self.statuses[status_id]
        except KeyError:
            raise NotFoundError(f"Status {status_id} not found", status_id=status_id) from None

    def status_name(self, status_id: UUID | None) -> str:
        if status_id is None or status_id not in self.statuses:
            return "Unknown"
        return self.statuses[status_id].name

    def category_of(self, status_id: UUID | None) -> StatusCategory:
        """Category of a task's status. Unset or unknown statuses count as to-do."""
        if status_id is None or status_id not in self.statuses:
            return StatusCategory.TODO
        return self.statuses[status_id].category

    def successors(self, status_id: UUID) -> list[StatusNode]:
        targets = (to for frm, to in self.edges if frm == status_id and to in self.statuses)
        return sorted(
            (self.statuses[to] for to in targets),
            key=lambda s: (s.position, s.name),
        )

    def allows(
        self, from_status_id: UUID | None, to_status_id: UUID, policy: TransitionPolicy
    ) -> bool:
        """Whether a task in ``from_status_id`` may move to ``to_status_id``.

        Raises:
            NotFoundError: ``to_status_id`` is not a status of this project
        """
        if to_status_id not in self.statuses:
            raise NotFoundError(f"Status {to_status_id} not found", status_id=to_status_id)
        if from_status_id is None:
            return policy.allow_initial_assignment
        if from_status_id == to_status_id and policy.allow_self_transition:
            return True
        return (from_status_id, to_status_id) in self.edges


async def load_workflow_graph(session: AsyncSession) -> WorkflowGraph:
    """Read statuses, their categories and transitions in the session's transaction."""
    repo = StatusRepository(session)
    types = {t.id: t for t in await repo.list_types()}
    nodes = [
        StatusNode(
            id=s.id,
            name=s.name,
            type_id=s.type_id,
            category=(
                types[s.type_id].category_enum if s.type_id in types else StatusCategory.TODO
            ),
            position=s.position,
        )
        for s in await repo.list_all()
    ]
    edges = [(t.from_status_id, t.to_status_id) for t in await repo.list_transitions()]
    return WorkflowGraph.build(nodes, edges)
