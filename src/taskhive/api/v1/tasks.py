"""Task endpoints - every mutation goes through the workflow engine."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.taskhive.api.dependencies import ActorId, TaskServiceDep
from src.taskhive.schemas.task import (
    TaskAuditRead,
    TaskCreate,
    TaskRead,
    TaskStatusChange,
    TaskTransitionRead,
    TaskUpdate,
)

router = APIRouter(prefix="/projects/{project_id}/tasks", tags=["tasks"])


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create task",
    responses={
        201: {"description": "Task created"},
        404: {"description": "Project, status or sprint not found"},
        422: {"description": "Initial status not allowed"},
    },
)
async def create_task(
    project_id: UUID, request: TaskCreate, service: TaskServiceDep, actor_id: ActorId
) -> TaskRead:
    task = await service.create_task(project_id, request, actor_id)
    return TaskRead.model_validate(task)


@router.get("", response_model=list[TaskRead], summary="List tasks")
async def list_tasks(
    project_id: UUID,
    service: TaskServiceDep,
    sprint_id: Annotated[UUID | None, Query(description="Only tasks of this sprint")] = None,
    include_archived: Annotated[bool, Query()] = False,
) -> list[TaskRead]:
    tasks = await service.list_tasks(project_id, sprint_id, include_archived)
    return [TaskRead.model_validate(t) for t in tasks]


@router.get(
    "/{task_id}",
    response_model=TaskRead,
    summary="Get task",
    responses={404: {"description": "Task not found"}},
)
async def get_task(project_id: UUID, task_id: UUID, service: TaskServiceDep) -> TaskRead:
    return TaskRead.model_validate(await service.get_task(project_id, task_id))


@router.get(
    "/{task_id}/history",
    response_model=list[TaskAuditRead],
    summary="Task audit trail",
    responses={404: {"description": "Task not found"}},
)
async def get_task_history(
    project_id: UUID, task_id: UUID, service: TaskServiceDep
) -> list[TaskAuditRead]:
    entries = await service.get_task_history(project_id, task_id)
    return [TaskAuditRead.model_validate(e) for e in entries]


@router.patch(
    "/{task_id}",
    response_model=TaskRead,
    summary="Update task",
    responses={
        404: {"description": "Task, status or sprint not found"},
        409: {"description": "Task is archived or changed concurrently"},
        422: {"description": "Status change not allowed"},
    },
)
async def update_task(
    project_id: UUID,
    task_id: UUID,
    request: TaskUpdate,
    service: TaskServiceDep,
    actor_id: ActorId,
) -> TaskRead:
    task = await service.update_task(project_id, task_id, request, actor_id)
    return TaskRead.model_validate(task)


@router.post(
    "/{task_id}/status",
    response_model=TaskTransitionRead,
    summary="Change task status",
    responses={
        404: {"description": "Task or status not found"},
        409: {"description": "Task is archived or changed concurrently"},
        422: {"description": "Transition not allowed"},
    },
)
async def change_task_status(
    project_id: UUID,
    task_id: UUID,
    request: TaskStatusChange,
    service: TaskServiceDep,
    actor_id: ActorId,
) -> TaskTransitionRead:
    result = await service.change_task_status(project_id, task_id, request.status_id, actor_id)
    return TaskTransitionRead(
        task=TaskRead.model_validate(result.task),
        status_id=result.status_id,
        status_name=result.status_name,
        status_category=result.status_category.value,
    )


@router.post(
    "/{task_id}/archive",
    response_model=TaskRead,
    summary="Archive task",
    responses={
        404: {"description": "Task not found"},
        409: {"description": "Task is already archived"},
    },
)
async def archive_task(
    project_id: UUID, task_id: UUID, service: TaskServiceDep, actor_id: ActorId
) -> TaskRead:
    return TaskRead.model_validate(await service.archive_task(project_id, task_id, actor_id))
