"""Namespace and tenant database name validators."""

import re
from typing import Final
from uuid import UUID

MAX_DATABASE_NAME_LENGTH: Final[int] = 63  # PostgreSQL identifier limit
NAMESPACE_REGEX: Final[str] = r"^[a-z0-9][a-z0-9_]*$"
DATABASE_NAME_REGEX: Final[str] = r"^[a-z][a-z0-9_]*$"

_NAMESPACE_PATTERN: Final[re.Pattern[str]] = re.compile(NAMESPACE_REGEX)
_DATABASE_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(DATABASE_NAME_REGEX)

_FORBIDDEN_PATTERNS: Final[tuple[str, ...]] = (
    "pg_",
    "template",
    "postgres",
    "information_schema",
    "--",
    ";",
    "/*",
    "*/",
)


def namespace_for_project(project_id: UUID) -> str:
    """Derive the namespace for a project: the 32-char hex form of its id.

    E.g., UUID('0f8f...') -> '0f8f...' (no hyphens, lowercase)
    """
    return project_id.hex


def validate_namespace(namespace: str) -> str:
    """Validate namespace format (no database prefix).

    Raises:
        ValueError: If the namespace is empty or contains invalid characters
    """
    if not _NAMESPACE_PATTERN.match(namespace):
        raise ValueError(
            f"Invalid namespace: {namespace!r}. "
            "Must be lowercase alphanumeric with underscores."
        )
    return namespace


def validate_database_name(database_name: str) -> None:
    """Validate a tenant database name before it is interpolated into DDL.

    Database names must:
    - Start with a lowercase letter
    - Contain only lowercase letters, numbers and underscores
    - Not exceed 63 characters (PostgreSQL limit)
    - Not contain forbidden patterns

    Raises:
        ValueError: If the name is invalid

    Examples:
        >>> validate_database_name("project_0f8fad5bd9cb469fa16570867728950e")  # Valid
        >>> validate_database_name("postgres")  # Invalid - forbidden pattern
    """
    if len(database_name) > MAX_DATABASE_NAME_LENGTH:
        raise ValueError(
            f"Database name exceeds PostgreSQL limit: "
            f"{len(database_name)} > {MAX_DATABASE_NAME_LENGTH}"
        )

    if not _DATABASE_NAME_PATTERN.match(database_name):
        raise ValueError(
            f"Invalid database name format: {database_name}. "
            "Must start with a letter followed by lowercase alphanumerics or underscores."
        )

    if any(pattern in database_name for pattern in _FORBIDDEN_PATTERNS):
        raise ValueError(f"Database name contains forbidden pattern: {database_name}")


def database_name_for(prefix: str, namespace: str) -> str:
    """Build and validate the physical database name for a namespace."""
    validate_namespace(namespace)
    name = f"{prefix}{namespace}"
    validate_database_name(name)
    return name
