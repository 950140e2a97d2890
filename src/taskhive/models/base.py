from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC time without tzinfo.

    Registry and project databases store TIMESTAMP WITHOUT TIME ZONE in UTC.
    """
    return datetime.now(UTC).replace(tzinfo=None)
