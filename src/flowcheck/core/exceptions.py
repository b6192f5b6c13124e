"""Domain errors and exception handlers with request_id in responses."""

from typing import Any
from uuid import UUID

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.flowcheck.core.logging import get_logger

logger = get_logger(__name__)


class FlowcheckError(Exception):
    """Base class for errors surfaced to API callers with a stable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def extra(self) -> dict[str, Any]:
        """Additional fields merged into the error response body."""
        return {}


class AuthenticationError(FlowcheckError):
    """Bad or missing webhook signature / API key."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "authentication_failed"

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason

    def extra(self) -> dict[str, Any]:
        return {"reason": self.reason} if self.reason else {}


class ValidationError(FlowcheckError):
    """Malformed payload, unknown enum value, or a workflow that cannot be triggered."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(FlowcheckError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(FlowcheckError):
    """A test case already has a pending or running test run."""

    status_code = status.HTTP_409_CONFLICT
    code = "active_run_exists"

    def __init__(self, message: str, active_run_id: UUID | None = None) -> None:
        super().__init__(message)
        self.active_run_id = active_run_id

    def extra(self) -> dict[str, Any]:
        return {"active_run_id": str(self.active_run_id)} if self.active_run_id else {}


class EngineFault(FlowcheckError):
    """The external execution engine was unreachable or returned an error.

    `transient` marks faults worth retrying (network errors, timeouts, 5xx gateway
    responses). Engine 4xx responses are never transient.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "engine_fault"

    def __init__(
        self,
        message: str,
        *,
        transient: bool = False,
        execution_id: UUID | None = None,
    ) -> None:
        super().__init__(message)
        self.transient = transient
        self.execution_id = execution_id

    def extra(self) -> dict[str, Any]:
        return {"execution_id": str(self.execution_id)} if self.execution_id else {}


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(FlowcheckError)
    async def flowcheck_exception_handler(request: Request, exc: FlowcheckError) -> JSONResponse:
        request_id = correlation_id.get()
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                code=exc.code,
                error=exc.message,
                path=request.url.path,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.message,
                "code": exc.code,
                "request_id": request_id,
                **exc.extra(),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Malformed payloads and unknown enum values share the validation_error code
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": jsonable_encoder(exc.errors()),
                "code": ValidationError.code,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
