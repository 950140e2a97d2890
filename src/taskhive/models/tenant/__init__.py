"""Project-database models.

These tables exist in every project database and are created by tenant
migrations (alembic ``--tag=<database name>``), never in the registry.
"""

from src.taskhive.models.tenant.sprint import Sprint
from src.taskhive.models.tenant.task import Task, TaskAudit
from src.taskhive.models.tenant.workflow import Status, StatusTransition, StatusType

TENANT_TABLES = [
    StatusType.__table__,
    Status.__table__,
    StatusTransition.__table__,
    Sprint.__table__,
    Task.__table__,
    TaskAudit.__table__,
]
TENANT_TABLE_NAMES = frozenset(table.name for table in TENANT_TABLES)

__all__ = [
    "Sprint",
    "Status",
    "StatusTransition",
    "StatusType",
    "TENANT_TABLES",
    "TENANT_TABLE_NAMES",
    "Task",
    "TaskAudit",
]
