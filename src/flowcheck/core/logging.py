"""structlog setup and the context every flowcheck log line carries.

Context is held in contextvars:

- ``request_id``: bound per HTTP request by the logging middleware.
- ``execution_id`` and ``workflow_id``: bound once a trigger has recorded its execution.
- ``test_run_id`` and ``workflow_id``: bound for the duration of a background test run.

Background tasks are created from inside a request, so they inherit a copy of
that request's context.
"""

import logging
import sys
from uuid import UUID

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, unbind_contextvars
from structlog.typing import EventDict, Processor, WrappedLogger

NOISY_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "temporalio": logging.INFO,
    "alembic": logging.INFO,
}


def _service_name(service: str) -> Processor:
    def add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return add_service


def setup_logging(debug: bool = False, service: str = "flowcheck") -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        debug: Colored console output at DEBUG level. Otherwise JSON lines at INFO.
        service: Value of the ``service`` field on every entry.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _service_name(service),
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        # Tracebacks become structured fields instead of multi-line text
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(request_id: str | None) -> None:
    """Attach the request's correlation id, when there is one."""
    if request_id:
        bind_contextvars(request_id=request_id)


def bind_ids(**ids: UUID | None) -> None:
    """Bind identifier fields as strings, skipping the ones that are None."""
    bind_contextvars(**{key: str(value) for key, value in ids.items() if value is not None})


def bind_execution_context(execution_id: UUID, workflow_id: UUID) -> None:
    bind_ids(execution_id=execution_id, workflow_id=workflow_id)


def bind_test_run_context(test_run_id: UUID, workflow_id: UUID) -> None:
    bind_ids(test_run_id=test_run_id, workflow_id=workflow_id)


def unbind_test_run_context() -> None:
    unbind_contextvars("test_run_id", "workflow_id")


def clear_request_context() -> None:
    clear_contextvars()
