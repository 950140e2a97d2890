"""Request/response schemas."""

from src.taskhive.schemas.project import (
    ProjectCreate,
    ProjectCreateResponse,
    ProjectDeletionResponse,
    ProjectRead,
)
from src.taskhive.schemas.sprint import SprintCreate, SprintRead, SprintStatisticsRead
from src.taskhive.schemas.task import (
    TaskAuditRead,
    TaskCreate,
    TaskRead,
    TaskStatusChange,
    TaskTransitionRead,
    TaskUpdate,
)
from src.taskhive.schemas.workflow import (
    StatusRead,
    TransitionCheck,
    TransitionCheckResult,
    TransitionRead,
    WorkflowRead,
)

__all__ = [
    "ProjectCreate",
    "ProjectCreateResponse",
    "ProjectDeletionResponse",
    "ProjectRead",
    "SprintCreate",
    "SprintRead",
    "SprintStatisticsRead",
    "StatusRead",
    "TaskAuditRead",
    "TaskCreate",
    "TaskRead",
    "TaskStatusChange",
    "TaskTransitionRead",
    "TaskUpdate",
    "TransitionCheck",
    "TransitionCheckResult",
    "TransitionRead",
    "WorkflowRead",
]
