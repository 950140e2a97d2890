"""Default workflow loaded into every new project database."""

from typing import Any, Final
from uuid import NAMESPACE_URL, UUID, uuid5

from src.taskhive.models.base import utc_now
from src.taskhive.models.enums import StatusCategory

STATUS_TODO: Final[str] = "To Do"
STATUS_IN_PROGRESS: Final[str] = "In Progress"
STATUS_IN_REVIEW: Final[str] = "In Review"
STATUS_DONE: Final[str] = "Done"

# (id, description, category)
STATUS_TYPES: Final[list[tuple[int, str, StatusCategory]]] = [
    (1, "To Do", StatusCategory.TODO),
    (2, "In Progress", StatusCategory.IN_PROGRESS),
    (3, "Done", StatusCategory.DONE),
    (4, "In Review", StatusCategory.IN_PROGRESS),
]

# (name, type_id); list order is the board position
STATUSES: Final[list[tuple[str, int]]] = [
    (STATUS_TODO, 1),
    (STATUS_IN_PROGRESS, 2),
    (STATUS_IN_REVIEW, 4),
    (STATUS_DONE, 3),
]

TRANSITIONS: Final[list[tuple[str, str]]] = [
    (STATUS_TODO, STATUS_IN_PROGRESS),
    (STATUS_IN_PROGRESS, STATUS_IN_REVIEW),
    (STATUS_IN_PROGRESS, STATUS_DONE),
    (STATUS_IN_PROGRESS, STATUS_TODO),
    (STATUS_IN_REVIEW, STATUS_DONE),
    (STATUS_IN_REVIEW, STATUS_IN_PROGRESS),
]


def seed_status_id(name: str) -> UUID:
    """Stable id of a seeded status, identical in every project database."""
    return uuid5(NAMESPACE_URL, f"taskhive:status:{name}")


def seed_transition_id(from_name: str, to_name: str) -> UUID:
    return uuid5(NAMESPACE_URL, f"taskhive:transition:{from_name}->{to_name}")


def status_type_rows() -> list[dict[str, Any]]:
    now = utc_now()
    return [
        {"id": type_id, "description": description, "category": category.value, "created_at": now}
        for type_id, description, category in STATUS_TYPES
    ]


def status_rows() -> list[dict[str, Any]]:
    now = utc_now()
    return [
        {
            "id": seed_status_id(name),
            "name": name,
            "type_id": type_id,
            "position": position,
            "created_at": now,
        }
        for position, (name, type_id) in enumerate(STATUSES)
    ]


def transition_rows() -> list[dict[str, Any]]:
    now = utc_now()
    return [
        {
            "id": seed_transition_id(from_name, to_name),
            "from_status_id": seed_status_id(from_name),
            "to_status_id": seed_status_id(to_name),
            "created_at": now,
        }
        for from_name, to_name in TRANSITIONS
    ]
