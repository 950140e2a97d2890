"""Shared enums for models."""

from enum import Enum


class ProjectStatus(str, Enum):
    """Project provisioning status in the registry."""

    PROVISIONING = "provisioning"
    READY = "ready"
    FAILED = "failed"
    DELETING = "deleting"


class StatusCategory(str, Enum):
    """Category of a status type; drives sprint statistics."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class SprintState(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


class AuditOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    STATUS_CHANGE = "status_change"
    ARCHIVE = "archive"
