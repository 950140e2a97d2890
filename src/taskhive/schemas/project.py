"""Request and response bodies for the project registry endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ProjectCreate(BaseModel):
    """Body of POST /projects. The owner comes from X-Actor-ID, not the body."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name cannot be empty or whitespace only")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class ProjectRead(BaseModel):
    """A registry entry. ``namespace`` stays null until the project database exists."""

    id: UUID
    name: str
    description: str | None
    owner_id: UUID | None
    namespace: str | None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectCreateResponse(BaseModel):
    """Returned while the project database is provisioned in the background."""

    project: ProjectRead
    workflow_id: str


class ProjectDeletionResponse(BaseModel):
    """Returned when deletion runs as a background workflow."""

    project_id: UUID
    workflow_id: str
