"""
Project Deletion Workflow.

Hides the project, drains and drops its database, then removes the registry
record. A drop that still fails after attached sessions were terminated is
fatal and is not retried.
"""

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from src.taskhive.temporal.activities import (
        DeleteProjectInput,
        DeleteProjectOutput,
        ProjectCtx,
        delete_project_resources,
    )
    from src.taskhive.temporal.workflows._steps.common import long_activity_opts


@workflow.defn
class ProjectDeletionWorkflow:
    @staticmethod
    def workflow_id(project_id: str) -> str:
        return f"project-delete-{project_id}"

    @workflow.run
    async def run(self, project_id: str) -> dict[str, bool | str]:
        result: DeleteProjectOutput = await workflow.execute_activity(
            delete_project_resources,
            DeleteProjectInput(ctx=ProjectCtx(project_id=project_id)),
            **long_activity_opts("DatabaseDropFailedError"),  # type: ignore[arg-type]
        )
        workflow.logger.info(f"Project {project_id} deletion finished")
        return {"deleted": not result.already_deleted, "project_id": project_id}
