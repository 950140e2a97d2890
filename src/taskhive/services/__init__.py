from src.taskhive.services.project_lifecycle import ProjectLifecycleService
from src.taskhive.services.sprint_service import SprintService
from src.taskhive.services.sprint_statistics import SprintStatistics, SprintStatisticsResult
from src.taskhive.services.task_service import TaskService
from src.taskhive.services.tenant_registry import TenantRegistry
from src.taskhive.services.workflow_engine import TransitionResult, WorkflowEngine
from src.taskhive.services.workflow_graph import TransitionPolicy, WorkflowGraph

__all__ = [
    "ProjectLifecycleService",
    "SprintService",
    "SprintStatistics",
    "SprintStatisticsResult",
    "TaskService",
    "TenantRegistry",
    "TransitionPolicy",
    "TransitionResult",
    "WorkflowEngine",
    "WorkflowGraph",
]
