"""
Temporal Activities - Fine-grained, idempotent operations.

Activities should be:
1. Idempotent - Safe to retry
2. Fine-grained - Do one thing well
3. Side-effect aware - External calls go here, not in workflows
"""

from src.taskhive.temporal.activities._db import dispose_sync_engine
from src.taskhive.temporal.activities.project import (
    DeleteProjectInput,
    DeleteProjectOutput,
    ProvisionProjectInput,
    ProvisionProjectOutput,
    UpdateProjectStatusInput,
    delete_project_resources,
    provision_project_database,
    update_project_status,
)
from src.taskhive.temporal.context import ProjectCtx

__all__ = [
    # Context
    "ProjectCtx",
    # Dataclasses
    "DeleteProjectInput",
    "DeleteProjectOutput",
    "ProvisionProjectInput",
    "ProvisionProjectOutput",
    "UpdateProjectStatusInput",
    # Activities
    "delete_project_resources",
    "provision_project_database",
    "update_project_status",
    # Worker lifecycle
    "dispose_sync_engine",
]
