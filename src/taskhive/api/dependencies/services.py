"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.taskhive.core.config import get_settings
from src.taskhive.core.db.router import TenantRouter, get_tenant_router
from src.taskhive.services.project_lifecycle import ProjectLifecycleService
from src.taskhive.services.sprint_service import SprintService
from src.taskhive.services.task_service import TaskService
from src.taskhive.services.tenant_registry import TenantRegistry
from src.taskhive.services.workflow_engine import WorkflowEngine
from src.taskhive.services.workflow_graph import TransitionPolicy


def get_router() -> TenantRouter:
    """Get the process-wide tenant router."""
    return get_tenant_router()


def get_tenant_registry() -> TenantRegistry:
    """Get tenant registry bound to the registry engine."""
    return TenantRegistry()


Router = Annotated[TenantRouter, Depends(get_router)]
Registry = Annotated[TenantRegistry, Depends(get_tenant_registry)]


def get_workflow_engine(router: Router) -> WorkflowEngine:
    """Get workflow engine with the configured transition policy."""
    settings = get_settings()
    return WorkflowEngine(
        router,
        TransitionPolicy.from_settings(settings),
        operation_timeout=settings.operation_timeout_seconds,
    )


def get_task_service(
    registry: Registry,
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
) -> TaskService:
    """Get task service."""
    return TaskService(registry, engine)


def get_sprint_service(registry: Registry, router: Router) -> SprintService:
    """Get sprint service."""
    return SprintService(
        registry, router, operation_timeout=get_settings().operation_timeout_seconds
    )


def get_project_lifecycle(registry: Registry, router: Router) -> ProjectLifecycleService:
    """Get project lifecycle service."""
    return ProjectLifecycleService(registry, router)


TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
SprintServiceDep = Annotated[SprintService, Depends(get_sprint_service)]
ProjectLifecycleDep = Annotated[ProjectLifecycleService, Depends(get_project_lifecycle)]
