from __future__ import annotations

from alembic import context


def is_tenant_migration() -> bool:
    """True when Alembic was invoked with `--tag=<project_database>`.

    Tags mark project-database migrations. Registry migrations must no-op in
    that mode, and project migrations must no-op without it.
    """
    return bool(context.get_tag_argument())
