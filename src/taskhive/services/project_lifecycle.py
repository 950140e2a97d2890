"""Project lifecycle - creating and deleting a project together with its database."""

from uuid import UUID

from src.taskhive.core.db.router import TenantRouter
from src.taskhive.core.exceptions import ConflictError, NotFoundError, ProvisioningFailedError
from src.taskhive.core.logging import bind_tenant_context, get_logger
from src.taskhive.core.validators import namespace_for_project
from src.taskhive.models.public import Project, ProjectStatus
from src.taskhive.services.tenant_registry import TenantRegistry

logger = get_logger(__name__)


class ProjectLifecycleService:
    """Keeps the registry and the physical databases in step.

    Creation provisions before registering, so a namespace only ever points at
    a database that exists. Deletion hides the project first, drops the
    database, and removes the registry record last.
    """

    def __init__(self, registry: TenantRegistry, router: TenantRouter) -> None:
        self.registry = registry
        self.router = router

    async def create_project(
        self, name: str, description: str | None = None, owner_id: UUID | None = None
    ) -> Project:
        """Register a project and provision its database in-line."""
        project = await self.registry.create_project(name, description, owner_id)
        await self.on_project_created(project.id)
        return await self.registry.get_project(project.id)

    async def on_project_created(self, project_id: UUID) -> str:
        """Provision the project's database and register its namespace.

        Safe to call again for a project whose database already exists: the
        router finds it and no second database is created.

        Returns:
            The registered namespace

        Raises:
            NotFoundError: unknown project
            ProvisioningFailedError: provisioning failed; the project is marked failed
            ConflictError: the project already has a different namespace
        """
        project = await self.registry.get_project(project_id)
        namespace = namespace_for_project(project_id)
        bind_tenant_context(project_id, namespace)

        if project.namespace == namespace and project.status == ProjectStatus.READY.value:
            return namespace

        try:
            await self.router.acquire(namespace, provision=True)
        except ProvisioningFailedError as e:
            await self.registry.set_status(project_id, ProjectStatus.FAILED)
            logger.error("Project provisioning failed", error=e.message, retryable=e.retryable)
            raise

        if project.namespace != namespace:
            try:
                await self.registry.register_namespace(project_id, namespace)
            except ConflictError:
                current = await self.registry.get_project(project_id)
                if current.namespace != namespace:
                    await self._discard_orphan(namespace, current.namespace)
                    raise
                # A concurrent call for the same project registered it first

        await self.registry.set_status(project_id, ProjectStatus.READY)
        logger.info("Project ready")
        return namespace

    async def _discard_orphan(self, namespace: str, registered: str | None) -> None:
        if registered is None:
            # Another project owns this namespace; its database is not ours to drop
            logger.error("Namespace registered to another project", conflicting=namespace)
            return
        logger.warning(
            "Project already bound to another namespace, releasing provisioned database",
            registered=registered,
        )
        await self.router.release(namespace)

    async def delete_project(self, project_id: UUID) -> bool:
        """Delete a project and drop its database.

        Returns:
            True if the project was deleted, False if it no longer existed

        Raises:
            DatabaseDropFailedError: the database could not be dropped; the
                project stays marked as deleting and the call can be repeated
        """
        bind_tenant_context(project_id)
        try:
            namespace = await self.registry.mark_deleting(project_id)
        except NotFoundError:
            logger.info("Project already deleted")
            return False

        # Projects that failed before registration still own a database named after their id.
        namespace = namespace or namespace_for_project(project_id)
        bind_tenant_context(project_id, namespace)

        dropped = await self.router.release(namespace)
        await self.registry.release(project_id)
        logger.info("Project deleted", database_dropped=dropped)
        return True
