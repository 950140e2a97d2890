"""Task schemas for API request/response."""

from datetime import datetime
from typing import Any, Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status_id: UUID | None = None
    sprint_id: UUID | None = None
    assigned_to: UUID | None = None
    priority: int | None = Field(default=None, ge=0, le=10)
    estimate: int | None = Field(default=None, ge=0)
    due_at: datetime | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Task title cannot be empty or whitespace only")
        return v


class TaskUpdate(BaseModel):
    """Partial update. A ``status_id`` goes through the same checks as a status change."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status_id: UUID | None = None
    sprint_id: UUID | None = None
    assigned_to: UUID | None = None
    priority: int | None = Field(default=None, ge=0, le=10)
    estimate: int | None = Field(default=None, ge=0)
    due_at: datetime | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Task title cannot be empty or whitespace only")
        return v

    @model_validator(mode="after")
    def validate_status_not_cleared(self) -> Self:
        if "status_id" in self.model_fields_set and self.status_id is None:
            raise ValueError("status_id cannot be cleared once set")
        return self


class TaskStatusChange(BaseModel):
    status_id: UUID


class TaskRead(BaseModel):
    id: UUID
    title: str
    description: str | None
    status_id: UUID | None
    sprint_id: UUID | None
    created_by: UUID | None
    assigned_to: UUID | None
    priority: int | None
    estimate: int | None
    due_at: datetime | None
    archived: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskTransitionRead(BaseModel):
    """A task after a status change, with the status it moved to."""

    task: TaskRead
    status_id: UUID
    status_name: str
    status_category: str


class TaskAuditRead(BaseModel):
    id: UUID
    task_id: UUID
    operation: str
    changed_by: UUID | None
    changed_at: datetime
    changed_fields: list[str]
    old: dict[str, Any] | None
    new: dict[str, Any] | None

    model_config = {"from_attributes": True}
