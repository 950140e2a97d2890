"""Project endpoints - registry records and the databases behind them."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.taskhive.api.dependencies import ActorId, ProjectLifecycleDep, Registry
from src.taskhive.core.exceptions import NotFoundError
from src.taskhive.schemas.project import (
    ProjectCreate,
    ProjectCreateResponse,
    ProjectDeletionResponse,
    ProjectRead,
)
from src.taskhive.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


def get_project_service(registry: Registry) -> ProjectService:
    return ProjectService(registry)


ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]


@router.post(
    "",
    response_model=ProjectCreateResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Create project",
    description="Register a project and provision its database in the background.",
    responses={
        202: {"description": "Project accepted, provisioning started"},
    },
)
async def create_project(
    request: ProjectCreate,
    service: ProjectServiceDep,
    actor_id: ActorId,
) -> ProjectCreateResponse:
    project, workflow_id = await service.create_project(
        request.name, request.description, owner_id=actor_id
    )
    return ProjectCreateResponse(
        project=ProjectRead.model_validate(project), workflow_id=workflow_id
    )


@router.get(
    "",
    response_model=list[ProjectRead],
    summary="List projects",
    description="List projects that are not being deleted, newest first.",
)
async def list_projects(
    registry: Registry,
    owner_id: Annotated[UUID | None, Query(description="Only projects of this owner")] = None,
) -> list[ProjectRead]:
    projects = await registry.list_projects(owner_id)
    return [ProjectRead.model_validate(p) for p in projects]


@router.get(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Get project",
    responses={
        200: {"description": "Project details"},
        404: {"description": "Project not found"},
    },
)
async def get_project(project_id: UUID, registry: Registry) -> ProjectRead:
    return ProjectRead.model_validate(await registry.get_project(project_id))


@router.post(
    "/{project_id}/provision",
    response_model=ProjectRead,
    summary="Provision project database",
    description="Provision the database in-line, e.g. to retry after a failed provisioning.",
    responses={
        200: {"description": "Project ready"},
        404: {"description": "Project not found"},
        503: {"description": "Provisioning failed"},
    },
)
async def provision_project(
    project_id: UUID, lifecycle: ProjectLifecycleDep, registry: Registry
) -> ProjectRead:
    await lifecycle.on_project_created(project_id)
    return ProjectRead.model_validate(await registry.get_project(project_id))


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    description="Drain and drop the project database, then remove the project.",
    responses={
        204: {"description": "Project deleted"},
        404: {"description": "Project not found"},
        500: {"description": "Project database could not be dropped"},
    },
)
async def delete_project(project_id: UUID, lifecycle: ProjectLifecycleDep) -> None:
    if not await lifecycle.delete_project(project_id):
        raise NotFoundError(f"Project {project_id} not found", project_id=project_id)


@router.post(
    "/{project_id}/deletion",
    response_model=ProjectDeletionResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Delete project in the background",
    description="Hide the project immediately and drop its database in a durable workflow.",
    responses={
        202: {"description": "Deletion started"},
        404: {"description": "Project not found"},
    },
)
async def schedule_project_deletion(
    project_id: UUID, service: ProjectServiceDep
) -> ProjectDeletionResponse:
    workflow_id = await service.schedule_deletion(project_id)
    return ProjectDeletionResponse(project_id=project_id, workflow_id=workflow_id)
