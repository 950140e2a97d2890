"""Model exports.

Import from here: `from src.taskhive.models import Project, Task`
"""

from src.taskhive.models.enums import AuditOperation, ProjectStatus, SprintState, StatusCategory
from src.taskhive.models.public import Project
from src.taskhive.models.tenant import (
    TENANT_TABLE_NAMES,
    TENANT_TABLES,
    Sprint,
    Status,
    StatusTransition,
    StatusType,
    Task,
    TaskAudit,
)

__all__ = [
    # Enums
    "AuditOperation",
    "ProjectStatus",
    "SprintState",
    "StatusCategory",
    # Registry models
    "Project",
    # Project-database models
    "Sprint",
    "Status",
    "StatusTransition",
    "StatusType",
    "Task",
    "TaskAudit",
    "TENANT_TABLES",
    "TENANT_TABLE_NAMES",
]
