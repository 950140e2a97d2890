"""Repository layer for data access."""

from src.taskhive.repositories.base import BaseRepository
from src.taskhive.repositories.public import ProjectRepository
from src.taskhive.repositories.tenant import (
    SprintRepository,
    StatusRepository,
    TaskAuditRepository,
    TaskRepository,
)

__all__ = [
    "BaseRepository",
    # Registry
    "ProjectRepository",
    # Project database
    "SprintRepository",
    "StatusRepository",
    "TaskAuditRepository",
    "TaskRepository",
]
