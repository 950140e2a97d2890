"""Sprint endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.taskhive.api.dependencies import SprintServiceDep
from src.taskhive.models.enums import SprintState
from src.taskhive.schemas.sprint import SprintCreate, SprintRead, SprintStatisticsRead

router = APIRouter(prefix="/projects/{project_id}/sprints", tags=["sprints"])


@router.post(
    "",
    response_model=SprintRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create sprint",
)
async def create_sprint(
    project_id: UUID, request: SprintCreate, service: SprintServiceDep
) -> SprintRead:
    return SprintRead.model_validate(await service.create_sprint(project_id, request))


@router.get("", response_model=list[SprintRead], summary="List sprints")
async def list_sprints(
    project_id: UUID,
    service: SprintServiceDep,
    state: Annotated[SprintState | None, Query()] = None,
) -> list[SprintRead]:
    return [SprintRead.model_validate(s) for s in await service.list_sprints(project_id, state)]


@router.get(
    "/{sprint_id}",
    response_model=SprintRead,
    summary="Get sprint",
    responses={404: {"description": "Sprint not found"}},
)
async def get_sprint(project_id: UUID, sprint_id: UUID, service: SprintServiceDep) -> SprintRead:
    return SprintRead.model_validate(await service.get_sprint(project_id, sprint_id))


@router.post(
    "/{sprint_id}/start",
    response_model=SprintRead,
    summary="Start sprint",
    responses={409: {"description": "Sprint is not planned"}},
)
async def start_sprint(
    project_id: UUID, sprint_id: UUID, service: SprintServiceDep
) -> SprintRead:
    return SprintRead.model_validate(await service.start_sprint(project_id, sprint_id))


@router.post(
    "/{sprint_id}/complete",
    response_model=SprintRead,
    summary="Complete sprint",
    responses={409: {"description": "Sprint is not active"}},
)
async def complete_sprint(
    project_id: UUID, sprint_id: UUID, service: SprintServiceDep
) -> SprintRead:
    return SprintRead.model_validate(await service.complete_sprint(project_id, sprint_id))


@router.delete(
    "/{sprint_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete sprint",
    description="Delete a planned sprint. Its tasks move back to the backlog.",
    responses={409: {"description": "Sprint is not planned"}},
)
async def delete_sprint(project_id: UUID, sprint_id: UUID, service: SprintServiceDep) -> None:
    await service.delete_sprint(project_id, sprint_id)


@router.get(
    "/{sprint_id}/statistics",
    response_model=SprintStatisticsRead,
    summary="Sprint statistics",
    description="Task counts by status category over the sprint's non-archived tasks.",
    responses={404: {"description": "Sprint not found"}},
)
async def get_sprint_statistics(
    project_id: UUID, sprint_id: UUID, service: SprintServiceDep
) -> SprintStatisticsRead:
    stats = await service.get_sprint_statistics(project_id, sprint_id)
    return SprintStatisticsRead.model_validate(stats)
