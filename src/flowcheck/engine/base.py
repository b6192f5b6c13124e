"""Execution engine protocol and shared retry handling."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from src.flowcheck.core.exceptions import EngineFault
from src.flowcheck.core.logging import get_logger

logger = get_logger(__name__)

# Gateway-style responses worth another attempt; every other 4xx/5xx is final
TRANSIENT_STATUS_CODES = frozenset({502, 503, 504})


@dataclass(frozen=True)
class EngineExecution:
    """Reference to an execution started inside the external engine."""

    id: str
    status: str = "running"


class ExecutionEngine(Protocol):
    """What the orchestrator needs from an external workflow engine."""

    async def execute(self, engine_workflow_id: str, payload: dict[str, Any]) -> EngineExecution:
        """Start a full workflow execution and return the engine's reference."""
        ...

    async def run_step(
        self, engine_workflow_id: str, step: dict[str, Any], input_data: Any
    ) -> Any:
        """Run a single step with the given input and return its output."""
        ...

    async def health_check(self) -> None:
        """Raise if the engine cannot be reached."""
        ...

    async def aclose(self) -> None: ...


def compute_backoff(attempt: int, base: float, jitter: float = 0.1) -> float:
    """Exponential backoff with a little jitter: base, 2*base, 4*base, ..."""
    return base * (2**attempt) + random.uniform(0, jitter)


async def call_with_retries[T](
    operation: Callable[[], Awaitable[T]],
    *,
    operation_name: str,
    timeout: float,
    max_retries: int,
    backoff: float,
) -> T:
    """Run ``operation`` bounded by ``timeout`` per attempt.

    Transient faults (``EngineFault(transient=True)`` or a timeout) are retried
    up to ``max_retries`` times. Anything else is raised immediately.

    Raises:
        EngineFault: When the last attempt fails or the fault is not transient.
    """
    attempt = 0
    while True:
        try:
            return await asyncio.wait_for(operation(), timeout=timeout)
        except TimeoutError:
            fault = EngineFault(
                f"Engine {operation_name} timed out after {timeout}s", transient=True
            )
        except EngineFault as e:
            if not e.transient:
                raise
            fault = e

        if attempt >= max_retries:
            logger.error(
                "Engine call failed, retries exhausted",
                operation=operation_name,
                attempts=attempt + 1,
                error=fault.message,
            )
            raise fault

        delay = compute_backoff(attempt, backoff)
        logger.warning(
            "Transient engine fault, retrying",
            operation=operation_name,
            attempt=attempt + 1,
            max_retries=max_retries,
            delay=round(delay, 2),
            error=fault.message,
        )
        await asyncio.sleep(delay)
        attempt += 1
