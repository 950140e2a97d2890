"""Task service - task operations addressed by project id."""

from uuid import UUID

from src.taskhive.core.logging import bind_tenant_context
from src.taskhive.models.tenant import Task, TaskAudit
from src.taskhive.schemas.task import TaskCreate, TaskUpdate
from src.taskhive.services.tenant_registry import TenantRegistry
from src.taskhive.services.workflow_engine import TransitionResult, WorkflowEngine
from src.taskhive.services.workflow_graph import WorkflowGraph


class TaskService:
    """Resolves the project's namespace, then delegates to the workflow engine."""

    def __init__(self, registry: TenantRegistry, engine: WorkflowEngine) -> None:
        self.registry = registry
        self.engine = engine

    async def _namespace(self, project_id: UUID) -> str:
        namespace = await self.registry.resolve_namespace(project_id)
        bind_tenant_context(project_id, namespace)
        return namespace

    async def get_workflow(self, project_id: UUID) -> WorkflowGraph:
        return await self.engine.get_workflow_graph(await self._namespace(project_id))

    async def validate_transition(
        self, project_id: UUID, from_status_id: UUID | None, to_status_id: UUID
    ) -> bool:
        namespace = await self._namespace(project_id)
        return await self.engine.validate_transition(namespace, from_status_id, to_status_id)

    async def create_task(
        self, project_id: UUID, data: TaskCreate, actor_id: UUID | None = None
    ) -> Task:
        namespace = await self._namespace(project_id)
        return await self.engine.create_task(namespace, data, actor_id)

    async def get_task(self, project_id: UUID, task_id: UUID) -> Task:
        return await self.engine.get_task(await self._namespace(project_id), task_id)

    async def list_tasks(
        self,
        project_id: UUID,
        sprint_id: UUID | None = None,
        include_archived: bool = False,
    ) -> list[Task]:
        namespace = await self._namespace(project_id)
        return await self.engine.list_tasks(
            namespace, sprint_id=sprint_id, include_archived=include_archived
        )

    async def get_task_history(self, project_id: UUID, task_id: UUID) -> list[TaskAudit]:
        return await self.engine.get_task_history(await self._namespace(project_id), task_id)

    async def update_task(
        self, project_id: UUID, task_id: UUID, data: TaskUpdate, actor_id: UUID | None = None
    ) -> Task:
        namespace = await self._namespace(project_id)
        return await self.engine.update_task(namespace, task_id, data, actor_id)

    async def change_task_status(
        self,
        project_id: UUID,
        task_id: UUID,
        new_status_id: UUID,
        actor_id: UUID | None = None,
    ) -> TransitionResult:
        namespace = await self._namespace(project_id)
        return await self.engine.apply_transition(namespace, task_id, new_status_id, actor_id)

    async def archive_task(
        self, project_id: UUID, task_id: UUID, actor_id: UUID | None = None
    ) -> Task:
        namespace = await self._namespace(project_id)
        return await self.engine.archive(namespace, task_id, actor_id)
