"""/health and /metrics.

Health combines two components. The database is required: when it is down the
service is ``unhealthy`` (503). The execution engine is optional: without one
triggers are still recorded, so an unreachable engine only makes the service
``degraded`` (200).
"""

import secrets
import time
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from src.flowcheck.core.config import get_settings
from src.flowcheck.core.db import get_session
from src.flowcheck.core.logging import get_logger
from src.flowcheck.core.shutdown import request_tracker
from src.flowcheck.engine import get_execution_engine

logger = get_logger(__name__)

HEALTH_CACHE_TTL = 10  # seconds

_health_cache: dict[str, Any] | None = None
_health_cache_time: float = 0


def reset_health_cache() -> None:
    """Reset health cache (for testing)."""
    global _health_cache, _health_cache_time
    _health_cache = None
    _health_cache_time = 0


async def check_database() -> str:
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Database health check failed", error=str(e))
        return f"unhealthy: {e!s}"
    return "healthy"


async def check_engine() -> str:
    engine = get_execution_engine()
    if engine is None:
        return "not_configured"
    try:
        await engine.health_check()
    except Exception as e:
        logger.warning("Engine health check failed", error=str(e))
        return f"unhealthy: {e!s}"
    return "healthy"


def overall_status(database: str, engine: str) -> str:
    if database != "healthy":
        return "unhealthy"
    if engine.startswith("unhealthy"):
        return "degraded"
    return "healthy"


def _response(body: dict[str, Any]) -> JSONResponse:
    return JSONResponse(content=body, status_code=503 if body["status"] == "unhealthy" else 200)


def setup_health_endpoint(app: FastAPI) -> None:
    @app.get("/health", tags=["health"])
    async def health() -> JSONResponse:
        global _health_cache, _health_cache_time

        if request_tracker.is_shutting_down:
            return JSONResponse(
                content={
                    "status": "draining",
                    "in_flight_requests": request_tracker.in_flight_count,
                    "background_tasks": len(request_tracker.background_tasks),
                    "message": "Server is shutting down",
                },
                status_code=503,
            )

        now = time.time()
        age = now - _health_cache_time
        if _health_cache is not None and age < HEALTH_CACHE_TTL:
            return _response({**_health_cache, "cached": True, "cache_age_seconds": round(age, 1)})

        database = await check_database()
        engine = await check_engine()
        _health_cache = {
            "status": overall_status(database, engine),
            "database": database,
            "engine": engine,
            "cached": False,
            "timestamp": now,
        }
        _health_cache_time = now
        return _response(_health_cache)


def setup_metrics(app: FastAPI) -> None:
    """Expose Prometheus metrics, behind X-Metrics-Key when METRICS_API_KEY is set."""
    metrics_key = get_settings().metrics_api_key
    instrumentator = Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app)

    if not metrics_key:
        instrumentator.expose(app, endpoint="/metrics")
        return

    api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

    async def verify_metrics_key(api_key: str | None = Depends(api_key_header)) -> None:
        if api_key is None or not secrets.compare_digest(api_key, metrics_key):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing metrics API key",
            )

    instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
