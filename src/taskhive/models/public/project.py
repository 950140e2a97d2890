"""Project model - tenant registry in the global database."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.taskhive.models.base import utc_now
from src.taskhive.models.enums import ProjectStatus

MAX_NAMESPACE_LENGTH = 48


class Project(SQLModel, table=True):
    """Project registry entry.

    ``namespace`` identifies the project's dedicated database. It is set once,
    after provisioning succeeds, and never changes afterwards.
    """

    __tablename__ = "projects"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255, index=True)
    description: str | None = Field(default=None, max_length=2000)
    owner_id: UUID | None = Field(default=None, index=True)
    namespace: str | None = Field(
        default=None, max_length=MAX_NAMESPACE_LENGTH, unique=True, index=True
    )
    status: str = Field(default=ProjectStatus.PROVISIONING.value, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None)

    @property
    def status_enum(self) -> ProjectStatus:
        return ProjectStatus(self.status)

    @property
    def is_deleted(self) -> bool:
        """Check if the project is marked for deletion."""
        return self.deleted_at is not None
