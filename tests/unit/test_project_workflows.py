"""Tests for the project provisioning and deletion workflows with stubbed activities."""

from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
from temporalio import activity
from temporalio.client import WorkflowFailureError
from temporalio.exceptions import ApplicationError
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker

from src.taskhive.models.enums import ProjectStatus
from src.taskhive.temporal.activities import (
    DeleteProjectInput,
    DeleteProjectOutput,
    ProvisionProjectInput,
    ProvisionProjectOutput,
    UpdateProjectStatusInput,
)
from src.taskhive.temporal.workflows import ProjectDeletionWorkflow, ProjectProvisioningWorkflow
from src.taskhive.temporal.workflows._steps.common import long_activity_opts

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]

TASK_QUEUE = "test-queue"

status_updates: list[tuple[str, str]] = []


@activity.defn(name="provision_project_database")
async def provision_ok(input: ProvisionProjectInput) -> ProvisionProjectOutput:
    return ProvisionProjectOutput(project_id=input.ctx.project_id, namespace="abc123")


@activity.defn(name="provision_project_database")
async def provision_unknown_project(input: ProvisionProjectInput) -> ProvisionProjectOutput:
    raise ApplicationError("Project not found", type="NotFoundError", non_retryable=True)


@activity.defn(name="update_project_status")
async def record_status(input: UpdateProjectStatusInput) -> bool:
    status_updates.append((input.ctx.project_id, input.status))
    return True


@activity.defn(name="delete_project_resources")
async def delete_ok(input: DeleteProjectInput) -> DeleteProjectOutput:
    return DeleteProjectOutput(success=True, already_deleted=False)


@activity.defn(name="delete_project_resources")
async def delete_gone(input: DeleteProjectInput) -> DeleteProjectOutput:
    return DeleteProjectOutput(success=True, already_deleted=True)


@pytest.fixture
async def env() -> AsyncGenerator[WorkflowEnvironment]:
    try:
        environment = await WorkflowEnvironment.start_time_skipping()
    except Exception as e:
        pytest.skip(f"Temporal test server unavailable: {e}")
    async with environment:
        yield environment


@pytest.fixture(autouse=True)
def clear_status_updates():
    status_updates.clear()
    yield
    status_updates.clear()


class TestProjectProvisioningWorkflow:
    async def test_returns_namespace(self, env: WorkflowEnvironment) -> None:
        project_id = str(uuid4())
        async with Worker(
            env.client,
            task_queue=TASK_QUEUE,
            workflows=[ProjectProvisioningWorkflow],
            activities=[provision_ok, record_status],
        ):
            namespace = await env.client.execute_workflow(
                ProjectProvisioningWorkflow.run,
                project_id,
                id=ProjectProvisioningWorkflow.workflow_id(project_id),
                task_queue=TASK_QUEUE,
            )

        assert namespace == "abc123"
        assert status_updates == []

    async def test_failure_marks_project_failed(self, env: WorkflowEnvironment) -> None:
        project_id = str(uuid4())
        async with Worker(
            env.client,
            task_queue=TASK_QUEUE,
            workflows=[ProjectProvisioningWorkflow],
            activities=[provision_unknown_project, record_status],
        ):
            with pytest.raises(WorkflowFailureError):
                await env.client.execute_workflow(
                    ProjectProvisioningWorkflow.run,
                    project_id,
                    id=ProjectProvisioningWorkflow.workflow_id(project_id),
                    task_queue=TASK_QUEUE,
                )

        assert status_updates == [(project_id, ProjectStatus.FAILED.value)]


class TestProjectDeletionWorkflow:
    @pytest.mark.parametrize(("activity_fn", "deleted"), [(delete_ok, True), (delete_gone, False)])
    async def test_reports_outcome(self, env: WorkflowEnvironment, activity_fn, deleted) -> None:
        project_id = str(uuid4())
        async with Worker(
            env.client,
            task_queue=TASK_QUEUE,
            workflows=[ProjectDeletionWorkflow],
            activities=[activity_fn],
        ):
            result = await env.client.execute_workflow(
                ProjectDeletionWorkflow.run,
                project_id,
                id=ProjectDeletionWorkflow.workflow_id(project_id),
                task_queue=TASK_QUEUE,
            )

        assert result == {"deleted": deleted, "project_id": project_id}


class TestWorkflowIds:
    """Workflow ids are derived from the project id so a second start is rejected."""

    async def test_ids_are_stable(self) -> None:
        project_id = str(uuid4())
        assert ProjectProvisioningWorkflow.workflow_id(project_id) == (
            f"project-provision-{project_id}"
        )
        assert ProjectDeletionWorkflow.workflow_id(project_id) == f"project-delete-{project_id}"

    async def test_long_activity_options(self) -> None:
        opts = long_activity_opts("DatabaseDropFailedError")
        assert opts["retry_policy"].non_retryable_error_types == ["DatabaseDropFailedError"]
        assert opts["retry_policy"].maximum_attempts == 3
