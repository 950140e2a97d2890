"""Project lifecycle activities."""

import asyncio
from dataclasses import dataclass
from uuid import UUID

from sqlmodel import Session, select
from temporalio import activity
from temporalio.exceptions import ApplicationError

from src.taskhive.core.db.router import get_tenant_router
from src.taskhive.core.exceptions import (
    ConflictError,
    DatabaseDropFailedError,
    NotFoundError,
    ProvisioningFailedError,
)
from src.taskhive.models.base import utc_now
from src.taskhive.models.public import Project, ProjectStatus
from src.taskhive.services.project_lifecycle import ProjectLifecycleService
from src.taskhive.services.tenant_registry import TenantRegistry
from src.taskhive.temporal.context import ProjectCtx

from ._db import get_sync_engine


@dataclass
class ProvisionProjectInput:
    ctx: ProjectCtx


@dataclass
class ProvisionProjectOutput:
    project_id: str
    namespace: str


@dataclass
class DeleteProjectInput:
    ctx: ProjectCtx


@dataclass
class DeleteProjectOutput:
    success: bool
    already_deleted: bool


@dataclass
class UpdateProjectStatusInput:
    ctx: ProjectCtx
    status: str  # "provisioning", "ready", "failed"


def _lifecycle() -> ProjectLifecycleService:
    return ProjectLifecycleService(TenantRegistry(), get_tenant_router())


@activity.defn
async def provision_project_database(input: ProvisionProjectInput) -> ProvisionProjectOutput:
    """
    Create the project's database and register its namespace.

    Idempotency: the namespace is derived from the project id, so a retry
    finds the database created by the earlier attempt instead of creating a
    second one, and registration is skipped once the namespace is recorded.

    Raises:
        ApplicationError: non-retryable for unknown projects, namespace
            conflicts and permanent provisioning failures
    """
    activity.logger.info(f"Provisioning database for project: {input.ctx.project_id}")
    try:
        namespace = await _lifecycle().on_project_created(UUID(input.ctx.project_id))
    except ProvisioningFailedError as e:
        raise ApplicationError(
            e.message, type=type(e).__name__, non_retryable=not e.retryable
        ) from e
    except (NotFoundError, ConflictError) as e:
        raise ApplicationError(e.message, type=type(e).__name__, non_retryable=True) from e

    activity.logger.info(f"Project {input.ctx.project_id} provisioned as {namespace}")
    return ProvisionProjectOutput(project_id=input.ctx.project_id, namespace=namespace)


@activity.defn
async def delete_project_resources(input: DeleteProjectInput) -> DeleteProjectOutput:
    """
    Hide the project, drop its database, and remove the registry record.

    Idempotency: a retry after the record is gone reports already_deleted=True
    and drops nothing.

    Raises:
        ApplicationError: DatabaseDropFailedError, never retried
    """
    activity.logger.info(f"Deleting project: {input.ctx.project_id}")
    try:
        deleted = await _lifecycle().delete_project(UUID(input.ctx.project_id))
    except DatabaseDropFailedError as e:
        raise ApplicationError(e.message, type=type(e).__name__, non_retryable=True) from e

    if deleted:
        activity.logger.info(f"Project {input.ctx.project_id} deleted")
    else:
        activity.logger.info(f"Project {input.ctx.project_id} already deleted (idempotent retry)")
    return DeleteProjectOutput(success=True, already_deleted=not deleted)


def _sync_update_project_status(project_id: str, status: str) -> bool:
    """Synchronous project status update logic."""
    try:
        ProjectStatus(status)
    except ValueError as e:
        raise ValueError(f"Invalid project status: {status}") from e

    engine = get_sync_engine()
    with Session(engine) as session:
        project = session.scalars(select(Project).where(Project.id == UUID(project_id))).first()
        if not project:
            return False

        project.status = status
        project.updated_at = utc_now()
        session.commit()
        return True


@activity.defn
async def update_project_status(input: UpdateProjectStatusInput) -> bool:
    """
    Update project status in the registry.

    Idempotency: "set to value" - repeating it leaves the same final state.

    Returns:
        True if status was updated, False if project not found
    """
    activity.logger.info(f"Updating project {input.ctx.project_id} status to: {input.status}")
    result = await asyncio.to_thread(
        _sync_update_project_status, input.ctx.project_id, input.status
    )
    if not result:
        activity.logger.error(f"Project {input.ctx.project_id} not found")
    return result
