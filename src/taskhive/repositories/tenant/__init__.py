from src.taskhive.repositories.tenant.sprint import SprintRepository
from src.taskhive.repositories.tenant.status import StatusRepository
from src.taskhive.repositories.tenant.task import TaskAuditRepository, TaskRepository

__all__ = [
    "SprintRepository",
    "StatusRepository",
    "TaskAuditRepository",
    "TaskRepository",
]
