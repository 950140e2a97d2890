"""In-flight operation tracking for draining (process shutdown and tenant release)."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from src.taskhive.core.logging import get_logger

logger = get_logger(__name__)


class InFlightTracker:
    """Counts in-flight operations and signals when they have drained.

    Also remembers which asyncio tasks are inside a tracked block so that a
    drain that runs out of patience can cancel them.
    """

    def __init__(self, name: str = "requests") -> None:
        self.name = name
        self._in_flight = 0
        self._draining = False
        self._drain_event = asyncio.Event()
        self._tasks: dict[asyncio.Task[object], int] = {}
        self._force_cancelled: set[asyncio.Task[object]] = set()

    @property
    def is_draining(self) -> bool:
        return self._draining

    @property
    def in_flight_count(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def track(self) -> AsyncGenerator[None]:
        """Context manager to track one operation."""
        # Bookkeeping never awaits, so a cancellation cannot land between the
        # increment and the matching decrement.
        task = asyncio.current_task()
        self._in_flight += 1
        if task is not None:
            self._tasks[task] = self._tasks.get(task, 0) + 1
        try:
            yield
        finally:
            self._in_flight -= 1
            if task is not None:
                remaining = self._tasks.get(task, 1) - 1
                if remaining:
                    self._tasks[task] = remaining
                else:
                    self._tasks.pop(task, None)
            if self._in_flight == 0 and self._draining:
                logger.debug("In-flight operations drained", tracker=self.name)
                self._drain_event.set()

    async def start_draining(self) -> None:
        """Mark the tracker as draining; ``wait_for_drain`` resolves at zero in-flight."""
        self._draining = True
        if self._in_flight == 0:
            self._drain_event.set()
        else:
            logger.info(
                "Waiting for in-flight operations",
                tracker=self.name,
                in_flight=self._in_flight,
            )

    async def wait_for_drain(self, timeout: float) -> bool:
        """
        Wait for all in-flight operations to complete.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            True if everything completed within timeout, False otherwise
        """
        try:
            await asyncio.wait_for(self._drain_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            logger.warning(
                "Drain timeout",
                tracker=self.name,
                timeout=timeout,
                in_flight=self._in_flight,
            )
            return False

    def cancel_in_flight(self) -> int:
        """Cancel every task still inside a tracked block. Returns how many were cancelled."""
        cancelled = 0
        for task in list(self._tasks):
            if task.done() or task is asyncio.current_task():
                continue
            self._force_cancelled.add(task)
            task.cancel()
            cancelled += 1
        if cancelled:
            logger.warning(
                "Force-cancelled in-flight operations", tracker=self.name, count=cancelled
            )
        return cancelled

    def consume_forced_cancellation(self, task: asyncio.Task[object] | None) -> bool:
        """True (once) if ``task`` was cancelled by ``cancel_in_flight``."""
        if task is None or task not in self._force_cancelled:
            return False
        self._force_cancelled.discard(task)
        return True

    def reset(self) -> None:
        """Reset tracker state. For testing only."""
        self._in_flight = 0
        self._draining = False
        self._drain_event = asyncio.Event()
        self._tasks.clear()
        self._force_cancelled.clear()


# Global tracker for HTTP requests (graceful shutdown)
request_tracker = InFlightTracker("requests")
