"""Shared workflow step utilities."""

from datetime import timedelta

from temporalio.common import RetryPolicy


def short_activity_opts() -> dict[str, object]:
    """Options for quick activities (registry reads, status updates)."""
    return {
        "start_to_close_timeout": timedelta(seconds=30),
        "retry_policy": RetryPolicy(
            maximum_attempts=3,
            initial_interval=timedelta(seconds=1),
        ),
    }


def long_activity_opts(*non_retryable: str) -> dict[str, object]:
    """Options for long activities (database creation and drop, migrations)."""
    return {
        "start_to_close_timeout": timedelta(minutes=10),
        "retry_policy": RetryPolicy(
            maximum_attempts=3,
            initial_interval=timedelta(seconds=2),
            non_retryable_error_types=list(non_retryable),
        ),
    }
