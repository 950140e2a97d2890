"""Temporal Workflows - Re-exports for worker registration."""

from src.taskhive.temporal.workflows.project_deletion import ProjectDeletionWorkflow
from src.taskhive.temporal.workflows.project_provisioning import ProjectProvisioningWorkflow

__all__ = [
    "ProjectDeletionWorkflow",
    "ProjectProvisioningWorkflow",
]
