"""Request and background task tracking for graceful shutdown."""

import asyncio
from collections.abc import AsyncGenerator, Coroutine
from contextlib import asynccontextmanager
from typing import Any

from src.flowcheck.core.logging import get_logger

logger = get_logger(__name__)


class RequestTracker:
    """Tracks in-flight requests and spawned background tasks for graceful shutdown.

    Background tasks (test run execution, activity log writes) count as in-flight
    work until they finish, so shutdown waits for them the same way it waits for
    HTTP requests.
    """

    def __init__(self) -> None:
        self._in_flight = 0
        self._shutting_down = False
        self._lock = asyncio.Lock()
        self._drain_event = asyncio.Event()
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def is_shutting_down(self) -> bool:
        """Check if the application is shutting down."""
        return self._shutting_down

    @property
    def in_flight_count(self) -> int:
        """Get the current number of in-flight requests and background tasks."""
        return self._in_flight

    @property
    def background_tasks(self) -> frozenset[asyncio.Task[Any]]:
        return frozenset(self._tasks)

    @asynccontextmanager
    async def track_request(self) -> AsyncGenerator[None]:
        """Context manager to track a request."""
        async with self._lock:
            self._in_flight += 1
            logger.debug(f"Request started, in-flight count: {self._in_flight}")
        try:
            yield
        finally:
            async with self._lock:
                self._in_flight -= 1
                logger.debug(f"Request completed, in-flight count: {self._in_flight}")
                if self._in_flight == 0 and self._shutting_down:
                    logger.info("All requests drained, setting drain event")
                    self._drain_event.set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        """Run a coroutine as a tracked background task.

        The task holds a strong reference until it completes. Exceptions are
        logged here; the spawning caller has already returned its response.
        """

        async def _tracked() -> Any:
            async with self.track_request():
                return await coro

        task = asyncio.create_task(_tracked(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Background task cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task failed",
                task=task.get_name(),
                error=str(exc),
                exc_info=exc,
            )

    async def wait_for_tasks(self, timeout: float | None = None) -> bool:
        """Wait for all currently spawned background tasks to finish.

        Returns:
            True if every task finished within timeout, False otherwise
        """
        pending = set(self._tasks)
        if not pending:
            return True
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        return not still_pending

    async def cancel_tasks(self) -> int:
        """Cancel background tasks that are still running. Returns how many were cancelled."""
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        return len(pending)

    async def start_shutdown(self) -> None:
        """Mark the application as shutting down."""
        logger.info("Request tracker entering shutdown mode")
        self._shutting_down = True
        async with self._lock:
            if self._in_flight == 0:
                logger.info("No in-flight requests, setting drain event immediately")
                self._drain_event.set()
            else:
                logger.info(f"Waiting for {self._in_flight} in-flight requests to complete")

    async def wait_for_drain(self, timeout: float) -> bool:
        """
        Wait for all in-flight requests and background tasks to complete.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            True if all work completed within timeout, False otherwise
        """
        try:
            await asyncio.wait_for(self._drain_event.wait(), timeout=timeout)
            logger.info("All requests drained successfully")
            return True
        except TimeoutError:
            logger.warning(
                f"Shutdown timeout after {timeout}s - {self._in_flight} requests still in-flight"
            )
            return False

    def reset(self) -> None:
        """Reset tracker state. For testing only."""
        self._in_flight = 0
        self._shutting_down = False
        self._drain_event = asyncio.Event()
        self._tasks = set()


# Global request tracker instance
request_tracker = RequestTracker()
