"""Sprint model - tenant-scoped entity."""

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.taskhive.models.base import utc_now
from src.taskhive.models.enums import SprintState


class Sprint(SQLModel, table=True):
    __tablename__ = "sprints"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=120, index=True)
    goal: str | None = Field(default=None, max_length=1000)
    start_date: date | None = Field(default=None)
    end_date: date | None = Field(default=None)
    state: str = Field(default=SprintState.PLANNED.value, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def state_enum(self) -> SprintState:
        return SprintState(self.state)
