"""Sprint schemas for API request/response."""

from datetime import date, datetime
from typing import Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class SprintCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    goal: str | None = Field(default=None, max_length=1000)
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Sprint name cannot be empty or whitespace only")
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> Self:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SprintRead(BaseModel):
    id: UUID
    name: str
    goal: str | None
    start_date: date | None
    end_date: date | None
    state: str
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None

    model_config = {"from_attributes": True}


class SprintStatisticsRead(BaseModel):
    sprint_id: UUID
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    todo_tasks: int
    by_status: dict[str, int]
    completion_rate: float

    model_config = {"from_attributes": True}
