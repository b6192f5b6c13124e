"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-backed fixtures are in tests/integration/conftest.py.
"""

import os
import tempfile

# Set APP_ENV to testing before any app imports to disable rate limiting
os.environ.setdefault("APP_ENV", "testing")
# Each integration test gets its own SQLite file (see the engine fixture); this only satisfies Settings
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'flowcheck-test.db')}",
)
os.environ.setdefault("ENGINE_BACKEND", "none")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import Generator

import pytest

from src.flowcheck.core.config import Settings, get_settings
from src.flowcheck.core.shutdown import request_tracker
from src.flowcheck.engine import reset_execution_engine

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()

WEBHOOK_SECRET = "test-webhook-secret"
WEBHOOK_API_KEY = "test-webhook-api-key"


@pytest.fixture
def settings() -> Settings:
    """Settings with both webhook credentials configured (hardened mode)."""
    return Settings(
        webhook_secret=WEBHOOK_SECRET,
        webhook_api_key=WEBHOOK_API_KEY,
        webhook_auth_mode="hardened",
    )


@pytest.fixture(autouse=True)
def _reset_global_state() -> Generator[None]:
    """Reset module-level singletons so tests never see each other's state."""
    request_tracker.reset()
    reset_execution_engine()
    yield
    request_tracker.reset()
    reset_execution_engine()
