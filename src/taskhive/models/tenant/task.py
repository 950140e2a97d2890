"""Task and task audit models - tenant-scoped entities."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON
from sqlmodel import Field, SQLModel

from src.taskhive.models.base import utc_now


class Task(SQLModel, table=True):
    """Work item.

    ``status_id`` is unset until the first transition. ``archived`` is
    terminal: archived tasks never change status again.
    """

    __tablename__ = "tasks"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status_id: UUID | None = Field(default=None, foreign_key="statuses.id", index=True)
    sprint_id: UUID | None = Field(default=None, foreign_key="sprints.id", index=True)
    created_by: UUID | None = Field(default=None)
    assigned_to: UUID | None = Field(default=None, index=True)
    priority: int | None = Field(default=None)
    estimate: int | None = Field(default=None)
    due_at: datetime | None = Field(default=None)
    archived: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class TaskAudit(SQLModel, table=True):
    """Append-only record of task mutations."""

    __tablename__ = "task_audit"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(index=True)
    operation: str = Field(max_length=20)
    changed_by: UUID | None = Field(default=None)
    changed_at: datetime = Field(default_factory=utc_now)
    changed_fields: list[str] = Field(default_factory=list, sa_type=JSON)
    old: dict[str, Any] | None = Field(default=None, sa_type=JSON)
    new: dict[str, Any] | None = Field(default=None, sa_type=JSON)
