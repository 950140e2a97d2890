"""Workflow (statuses and transitions) schemas."""

from uuid import UUID

from pydantic import BaseModel


class StatusRead(BaseModel):
    id: UUID
    name: str
    type_id: int
    category: str
    position: int


class TransitionRead(BaseModel):
    from_status_id: UUID
    to_status_id: UUID


class WorkflowRead(BaseModel):
    statuses: list[StatusRead]
    transitions: list[TransitionRead]


class TransitionCheck(BaseModel):
    from_status_id: UUID | None = None
    to_status_id: UUID


class TransitionCheckResult(BaseModel):
    allowed: bool
