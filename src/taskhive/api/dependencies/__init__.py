"""FastAPI dependency injection definitions."""

from src.taskhive.api.dependencies.actor import ActorId, get_actor_id
from src.taskhive.api.dependencies.services import (
    ProjectLifecycleDep,
    Registry,
    Router,
    SprintServiceDep,
    TaskServiceDep,
    get_project_lifecycle,
    get_router,
    get_sprint_service,
    get_task_service,
    get_tenant_registry,
    get_workflow_engine,
)

__all__ = [
    # Actor
    "ActorId",
    "get_actor_id",
    # Services
    "ProjectLifecycleDep",
    "Registry",
    "Router",
    "SprintServiceDep",
    "TaskServiceDep",
    "get_project_lifecycle",
    "get_router",
    "get_sprint_service",
    "get_task_service",
    "get_tenant_registry",
    "get_workflow_engine",
]
