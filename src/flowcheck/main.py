from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.flowcheck.api.middlewares import setup_middlewares
from src.flowcheck.api.v1.router import api_router
from src.flowcheck.core.config import get_settings
from src.flowcheck.core.db import dispose_engine, run_migrations_async
from src.flowcheck.core.exceptions import setup_exception_handlers
from src.flowcheck.core.health import setup_health_endpoint, setup_metrics
from src.flowcheck.core.logging import get_logger, setup_logging
from src.flowcheck.core.rate_limit import limiter
from src.flowcheck.core.shutdown import request_tracker
from src.flowcheck.engine import close_execution_engine

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug, service=settings.app_name)
    logger.info(f"Starting {settings.app_name}", engine_backend=settings.engine_backend)

    if settings.run_migrations_on_startup:
        await run_migrations_async()
        logger.info("Database migrations applied")

    yield

    # Graceful shutdown: in-flight requests and background test runs drain together
    grace_period = settings.shutdown_grace_period
    logger.info(
        f"Shutdown initiated, waiting for {request_tracker.in_flight_count} in-flight requests..."
    )

    await request_tracker.start_shutdown()

    drained = await request_tracker.wait_for_drain(timeout=grace_period)
    if not drained:
        cancelled = await request_tracker.cancel_tasks()
        logger.warning(
            f"Shutdown timeout after {grace_period}s - cancelled {cancelled} background tasks"
        )

    logger.info("Closing connections...")
    await close_execution_engine()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "webhooks", "description": "Inbound webhook triggers"},
    {"name": "executions", "description": "Workflow executions and engine callbacks"},
    {"name": "test-cases", "description": "Saved test cases for workflows"},
    {"name": "test-runs", "description": "Test run execution, results and cancellation"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Workflow trigger and testing API",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    setup_exception_handlers(app)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    setup_middlewares(app, settings)

    app.include_router(api_router)

    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
