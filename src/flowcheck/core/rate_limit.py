"""Rate limiting for the inbound webhook endpoint.

Uses slowapi with in-memory storage (per-process). Disabled in the testing
environment.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.flowcheck.core.config import get_settings
from src.flowcheck.core.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Generate rate limit key from client IP only.

    Webhook callers are unauthenticated until the body has been read, so no
    caller-supplied header takes part in the key.
    """
    return get_remote_address(request) or "unknown"


def webhook_rate_limit() -> str:
    """Limit string applied to webhook deliveries, read per request."""
    return get_settings().webhook_rate_limit


def create_limiter() -> Limiter:
    """Create rate limiter. Disabled in testing environment."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


# Note: This reads settings at import time. Changing APP_ENV needs a restart.
limiter = create_limiter()
