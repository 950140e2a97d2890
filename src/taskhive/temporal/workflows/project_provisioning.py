"""
Project Provisioning Workflow.

Steps:
1. Provision the project database and register its namespace. The router
   drops a half-created database itself, so no compensation step is needed.
2. On failure, mark the project as failed.

Idempotent: the workflow id is derived from the project id and the activity
reuses a database created by an earlier attempt.
"""

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from src.taskhive.models.enums import ProjectStatus
    from src.taskhive.temporal.activities import (
        ProjectCtx,
        ProvisionProjectInput,
        ProvisionProjectOutput,
        UpdateProjectStatusInput,
        provision_project_database,
        update_project_status,
    )
    from src.taskhive.temporal.workflows._steps.common import (
        long_activity_opts,
        short_activity_opts,
    )


@workflow.defn
class ProjectProvisioningWorkflow:
    """Create a project's database in the background after the API accepted the project."""

    @staticmethod
    def workflow_id(project_id: str) -> str:
        return f"project-provision-{project_id}"

    @workflow.run
    async def run(self, project_id: str) -> str:
        """
        Args:
            project_id: UUID of the project record created by the API

        Returns:
            The registered namespace
        """
        ctx = ProjectCtx(project_id=project_id)
        try:
            result: ProvisionProjectOutput = await workflow.execute_activity(
                provision_project_database,
                ProvisionProjectInput(ctx=ctx),
                **long_activity_opts("NotFoundError", "ConflictError"),  # type: ignore[arg-type]
            )
        except Exception as e:
            workflow.logger.error(f"Provisioning failed for project {project_id}: {e}")
            await workflow.execute_activity(
                update_project_status,
                UpdateProjectStatusInput(ctx=ctx, status=ProjectStatus.FAILED.value),
                **short_activity_opts(),  # type: ignore[arg-type]
            )
            raise

        workflow.logger.info(f"Project {project_id} ready, namespace: {result.namespace}")
        return result.namespace
