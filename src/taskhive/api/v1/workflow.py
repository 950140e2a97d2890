"""Workflow endpoints - a project's statuses and allowed transitions."""

from uuid import UUID

from fastapi import APIRouter

from src.taskhive.api.dependencies import TaskServiceDep
from src.taskhive.schemas.workflow import (
    StatusRead,
    TransitionCheck,
    TransitionCheckResult,
    TransitionRead,
    WorkflowRead,
)

router = APIRouter(prefix="/projects/{project_id}/workflow", tags=["workflow"])


@router.get(
    "",
    response_model=WorkflowRead,
    summary="Get workflow",
    description="Statuses ordered by position, with every allowed transition.",
)
async def get_workflow(project_id: UUID, service: TaskServiceDep) -> WorkflowRead:
    graph = await service.get_workflow(project_id)
    statuses = sorted(graph.statuses.values(), key=lambda s: (s.position, s.name))
    return WorkflowRead(
        statuses=[
            StatusRead(
                id=s.id,
                name=s.name,
                type_id=s.type_id,
                category=s.category.value,
                position=s.position,
            )
            for s in statuses
        ],
        transitions=[
            TransitionRead(from_status_id=s.id, to_status_id=t.id)
            for s in statuses
            for t in graph.successors(s.id)
        ],
    )


@router.post(
    "/validate",
    response_model=TransitionCheckResult,
    summary="Check a transition",
    responses={
        200: {"description": "Whether the transition is allowed"},
        404: {"description": "Target status not found"},
    },
)
async def validate_transition(
    project_id: UUID, request: TransitionCheck, service: TaskServiceDep
) -> TransitionCheckResult:
    allowed = await service.validate_transition(
        project_id, request.from_status_id, request.to_status_id
    )
    return TransitionCheckResult(allowed=allowed)
