"""Caller deadlines for tenant operations."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from src.taskhive.core.exceptions import OperationTimeoutError


@asynccontextmanager
async def deadline(seconds: float | None, operation: str, **context: Any) -> AsyncGenerator[None]:
    """Bound the enclosed block by ``seconds``; expiry raises OperationTimeoutError.

    Cancellation unwinds the block, so open transactions roll back. ``None``
    means no deadline.
    """
    if seconds is None:
        yield
        return

    timeout = asyncio.timeout(seconds)
    try:
        async with timeout:
            yield
    except TimeoutError as e:
        if not timeout.expired():
            raise
        raise OperationTimeoutError(
            f"{operation} did not complete within {seconds}s",
            operation=operation,
            timeout_seconds=seconds,
            **context,
        ) from e
