"""Project service - accepts projects and hands the heavy lifting to Temporal."""

from uuid import UUID

from src.taskhive.core.config import get_settings
from src.taskhive.core.logging import get_logger
from src.taskhive.models.public import Project, ProjectStatus
from src.taskhive.services.tenant_registry import TenantRegistry
from src.taskhive.temporal.client import get_temporal_client
from src.taskhive.temporal.workflows import ProjectDeletionWorkflow, ProjectProvisioningWorkflow

logger = get_logger(__name__)


class ProjectService:
    """Project creation and deletion via durable workflows - business logic only."""

    def __init__(self, registry: TenantRegistry) -> None:
        self.registry = registry

    async def create_project(
        self, name: str, description: str | None = None, owner_id: UUID | None = None
    ) -> tuple[Project, str]:
        """
        Register a project and start ProjectProvisioningWorkflow for it.

        The project is returned in ``provisioning`` status; the workflow
        creates its database, registers the namespace and marks it ready
        (or failed).

        Returns:
            The project and the Temporal workflow ID for tracking
        """
        project = await self.registry.create_project(name, description, owner_id)
        workflow_id = ProjectProvisioningWorkflow.workflow_id(str(project.id))

        try:
            client = await get_temporal_client()
            await client.start_workflow(
                ProjectProvisioningWorkflow.run,
                str(project.id),
                id=workflow_id,
                task_queue=get_settings().temporal_task_queue,
            )
        except Exception:
            await self.registry.set_status(project.id, ProjectStatus.FAILED)
            raise

        logger.info(
            "Project provisioning started", project_id=str(project.id), workflow_id=workflow_id
        )
        return project, workflow_id

    async def schedule_deletion(self, project_id: UUID) -> str:
        """Hide the project now and drop its database in ProjectDeletionWorkflow.

        Raises:
            NotFoundError: unknown project
        """
        await self.registry.mark_deleting(project_id)
        workflow_id = ProjectDeletionWorkflow.workflow_id(str(project_id))
        client = await get_temporal_client()
        await client.start_workflow(
            ProjectDeletionWorkflow.run,
            str(project_id),
            id=workflow_id,
            task_queue=get_settings().temporal_task_queue,
        )
        logger.info("Project deletion started", project_id=str(project_id), workflow_id=workflow_id)
        return workflow_id
