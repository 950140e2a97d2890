"""Global (registry) database models."""

from src.taskhive.models.enums import ProjectStatus
from src.taskhive.models.public.project import Project

__all__ = [
    "Project",
    "ProjectStatus",
]
