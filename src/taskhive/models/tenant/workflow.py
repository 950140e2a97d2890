"""Workflow graph tables: status types, statuses and allowed transitions."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from src.taskhive.models.base import utc_now
from src.taskhive.models.enums import StatusCategory


class StatusType(SQLModel, table=True):
    """Status type; its category classifies tasks for sprint statistics."""

    __tablename__ = "status_types"

    id: int = Field(primary_key=True)
    description: str = Field(max_length=100)
    category: str = Field(default=StatusCategory.TODO.value, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def category_enum(self) -> StatusCategory:
        return StatusCategory(self.category)


class Status(SQLModel, table=True):
    __tablename__ = "statuses"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100, unique=True)
    type_id: int = Field(foreign_key="status_types.id", index=True)
    position: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now)


class StatusTransition(SQLModel, table=True):
    """Directed edge: a task in ``from_status_id`` may move to ``to_status_id``."""

    __tablename__ = "status_transitions"
    __table_args__ = (
        UniqueConstraint("from_status_id", "to_status_id", name="uq_status_transitions_pair"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    from_status_id: UUID = Field(foreign_key="statuses.id", index=True)
    to_status_id: UUID = Field(foreign_key="statuses.id")
    created_at: datetime = Field(default_factory=utc_now)
