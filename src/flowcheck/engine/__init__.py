"""External execution engine adapters.

``get_execution_engine()`` returns the configured engine, or None when
``ENGINE_BACKEND=none``. Callers treat None as "no engine": triggers are
recorded without dispatch and test runs replay mock inputs.
"""

from src.flowcheck.core.config import get_settings
from src.flowcheck.engine.base import EngineExecution, ExecutionEngine, call_with_retries
from src.flowcheck.engine.http import HttpExecutionEngine
from src.flowcheck.engine.temporal import TemporalExecutionEngine

_engine: ExecutionEngine | None = None
_configured = False


def get_execution_engine() -> ExecutionEngine | None:
    """Get or create the engine singleton for the configured backend."""
    global _engine, _configured
    if not _configured:
        settings = get_settings()
        if settings.engine_backend == "http":
            _engine = HttpExecutionEngine(
                base_url=settings.engine_api_url,
                api_key=settings.engine_api_key,
                timeout=settings.engine_request_timeout_seconds,
                max_retries=settings.engine_max_retries,
                backoff=settings.engine_retry_backoff_seconds,
            )
        elif settings.engine_backend == "temporal":
            _engine = TemporalExecutionEngine(
                host=settings.temporal_host,
                namespace=settings.temporal_namespace,
                task_queue=settings.temporal_task_queue,
                timeout=settings.engine_request_timeout_seconds,
                max_retries=settings.engine_max_retries,
                backoff=settings.engine_retry_backoff_seconds,
            )
        _configured = True
    return _engine


def set_execution_engine(engine: ExecutionEngine | None) -> None:
    """Replace the engine singleton. For testing only."""
    global _engine, _configured
    _engine = engine
    _configured = True


def reset_execution_engine() -> None:
    """Forget the current engine so the next call re-reads settings. For testing only."""
    global _engine, _configured
    _engine = None
    _configured = False


async def close_execution_engine() -> None:
    """Close the engine client. Call during shutdown."""
    global _engine, _configured
    if _engine is not None:
        await _engine.aclose()
    _engine = None
    _configured = False


__all__ = [
    "EngineExecution",
    "ExecutionEngine",
    "HttpExecutionEngine",
    "TemporalExecutionEngine",
    "call_with_retries",
    "close_execution_engine",
    "get_execution_engine",
    "reset_execution_engine",
    "set_execution_engine",
]
