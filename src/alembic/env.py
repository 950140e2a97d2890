import os
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url
from sqlmodel import SQLModel

from alembic import context
from src.taskhive.core.config import get_settings
from src.taskhive.core.validators import validate_database_name

# Import all models for metadata
from src.taskhive.models import Project  # noqa: F401
from src.taskhive.models.tenant import TENANT_TABLE_NAMES

config = context.config

if config.config_file_name is not None and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def get_database_url() -> str:
    """Get database URL for migrations, preferring dedicated migrations URL."""
    settings = get_settings()
    return settings.database_migrations_url or settings.database_url


def get_url(database_name: str | None = None) -> str:
    """Get sync database URL (asyncpg -> psycopg2), optionally for another database."""
    url = make_url(get_database_url().replace("+asyncpg", "+psycopg2"))
    if database_name:
        # Validate database name before it reaches a connection string
        validate_database_name(database_name)
        url = url.set(database=database_name)
    return url.render_as_string(hide_password=False)


def include_object(obj, name, type_, reflected, compare_to):
    """
    Keep registry and project-database tables apart.

    - Registry migrations (no --tag): every table except project tables.
    - Project migrations (--tag <database>): project tables only.
    """
    if type_ != "table":
        return True

    if context.get_tag_argument():
        return name in TENANT_TABLE_NAMES
    return name not in TENANT_TABLE_NAMES


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=get_url(context.get_tag_argument()),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode with sync engine.

    The --tag names the project database to migrate; each project database
    keeps its own alembic_version table.
    """
    connectable = create_engine(
        get_url(context.get_tag_argument()),
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            include_object=include_object,
        )
        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
