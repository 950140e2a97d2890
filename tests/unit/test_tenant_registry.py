"""Tests for the tenant registry (projects table in the registry database)."""

from uuid import uuid4

import pytest

from src.taskhive.core.db.session import get_session
from src.taskhive.core.exceptions import ConflictError, NotFoundError
from src.taskhive.models.public import Project, ProjectStatus
from src.taskhive.repositories.public import ProjectRepository
from tests.factories import ProjectFactory

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


async def insert_project(engine, project: Project) -> Project:
    async with get_session(engine) as session:
        session.add(project)
        await session.commit()
    return project


async def load_project(engine, project_id) -> Project | None:
    async with get_session(engine) as session:
        return await ProjectRepository(session).get_by_id(project_id)


class TestProjects:
    async def test_create_project(self, registry):
        owner_id = uuid4()
        project = await registry.create_project("Apollo", "Moon landing", owner_id)

        assert project.name == "Apollo"
        assert project.owner_id == owner_id
        assert project.status == ProjectStatus.PROVISIONING.value
        assert project.namespace is None

        fetched = await registry.get_project(project.id)
        assert fetched.id == project.id

    async def test_get_unknown_project(self, registry):
        with pytest.raises(NotFoundError):
            await registry.get_project(uuid4())

    async def test_get_hides_projects_being_deleted(self, registry, registry_engine):
        project = await insert_project(registry_engine, ProjectFactory.deleting())

        with pytest.raises(NotFoundError):
            await registry.get_project(project.id)

    async def test_list_projects_filters_owner_and_deleted(self, registry, registry_engine):
        owner_id = uuid4()
        mine = await insert_project(registry_engine, ProjectFactory.build(owner_id=owner_id))
        await insert_project(registry_engine, ProjectFactory.build())
        await insert_project(registry_engine, ProjectFactory.deleting(owner_id=owner_id))

        assert [p.id for p in await registry.list_projects(owner_id)] == [mine.id]
        assert len(await registry.list_projects()) == 2

    async def test_set_status(self, registry):
        project = await registry.create_project("Apollo")

        assert await registry.set_status(project.id, ProjectStatus.READY) is True
        assert (await registry.get_project(project.id)).status == ProjectStatus.READY.value
        assert await registry.set_status(uuid4(), ProjectStatus.READY) is False


class TestNamespaces:
    """Tests for resolve/register namespace."""

    async def test_resolve_before_registration(self, registry):
        project = await registry.create_project("Apollo")

        with pytest.raises(NotFoundError, match="no database yet"):
            await registry.resolve_namespace(project.id)

    async def test_register_then_resolve(self, registry):
        project = await registry.create_project("Apollo")

        updated = await registry.register_namespace(project.id, project.id.hex)

        assert updated.namespace == project.id.hex
        assert await registry.resolve_namespace(project.id) == project.id.hex

    async def test_namespace_is_immutable(self, registry):
        project = await registry.create_project("Apollo")
        await registry.register_namespace(project.id, project.id.hex)

        with pytest.raises(ConflictError, match="already has a namespace"):
            await registry.register_namespace(project.id, "other_namespace")
        assert await registry.resolve_namespace(project.id) == project.id.hex

    async def test_namespace_is_unique(self, registry):
        first = await registry.create_project("Apollo")
        second = await registry.create_project("Gemini")
        await registry.register_namespace(first.id, "shared")

        with pytest.raises(ConflictError, match="already registered"):
            await registry.register_namespace(second.id, "shared")

        with pytest.raises(NotFoundError):
            await registry.resolve_namespace(second.id)

    async def test_register_for_unknown_project(self, registry):
        with pytest.raises(NotFoundError):
            await registry.register_namespace(uuid4(), "abc")

    async def test_register_invalid_namespace(self, registry):
        project = await registry.create_project("Apollo")
        with pytest.raises(ValueError):
            await registry.register_namespace(project.id, "Bad Namespace")

    async def test_resolve_unknown_project(self, registry):
        with pytest.raises(NotFoundError):
            await registry.resolve_namespace(uuid4())


class TestDeletion:
    """Tests for mark_deleting and release."""

    async def test_mark_deleting_hides_project(self, registry, registry_engine):
        project = await registry.create_project("Apollo")
        await registry.register_namespace(project.id, project.id.hex)

        assert await registry.mark_deleting(project.id) == project.id.hex

        with pytest.raises(NotFoundError):
            await registry.resolve_namespace(project.id)
        stored = await load_project(registry_engine, project.id)
        assert stored.status == ProjectStatus.DELETING.value
        assert stored.deleted_at is not None

    async def test_mark_deleting_is_idempotent(self, registry, registry_engine):
        project = await registry.create_project("Apollo")
        await registry.mark_deleting(project.id)
        first = (await load_project(registry_engine, project.id)).deleted_at

        assert await registry.mark_deleting(project.id) is None
        assert (await load_project(registry_engine, project.id)).deleted_at == first

    async def test_mark_deleting_unknown_project(self, registry):
        with pytest.raises(NotFoundError):
            await registry.mark_deleting(uuid4())

    async def test_release_is_idempotent(self, registry, registry_engine):
        project = await registry.create_project("Apollo")
        await registry.register_namespace(project.id, project.id.hex)

        assert await registry.release(project.id) is True
        assert await registry.release(project.id) is False
        assert await load_project(registry_engine, project.id) is None

    async def test_released_namespace_can_be_registered_again(self, registry):
        first = await registry.create_project("Apollo")
        await registry.register_namespace(first.id, "reused")
        await registry.release(first.id)

        second = await registry.create_project("Gemini")
        assert (await registry.register_namespace(second.id, "reused")).namespace == "reused"
