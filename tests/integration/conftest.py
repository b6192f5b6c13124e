"""Integration test fixtures for database and HTTP client operations.

Each test gets a fresh SQLite database file with the full schema, wired in
as the application's engine. Uses polyfactory for test data generation.
"""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from src.flowcheck.api.dependencies.services import get_webhook_authenticator
from src.flowcheck.core import db
from src.flowcheck.core.config import Settings
from src.flowcheck.core.health import reset_health_cache
from src.flowcheck.core.shutdown import request_tracker
from src.flowcheck.engine import set_execution_engine
from src.flowcheck.main import create_app
from src.flowcheck.models import TestCase, Workflow
from src.flowcheck.repositories import (
    StepResultRepository,
    TestCaseRepository,
    TestRunRepository,
    WorkflowRepository,
)
from src.flowcheck.services import ActivityService, TestExecutionService, WebhookAuthenticator
from tests.factories import TestCaseFactory, WorkflowFactory


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Create a per-test SQLite database with every table, used by the app as well."""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'flowcheck.db'}", poolclass=NullPool
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    db.set_engine(test_engine)
    set_execution_engine(None)
    reset_health_cache()

    yield test_engine

    # Let activity writes and background runs finish before the file goes away
    await request_tracker.wait_for_tasks(timeout=5)
    await request_tracker.cancel_tasks()
    db.set_engine(None)
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for database operations.

    The session does not auto-commit. Tests must call `await session.commit()`
    to persist changes.
    """
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def workflow(db_session: AsyncSession) -> Workflow:
    """An active three-step workflow (fetch, transform, notify)."""
    wf = WorkflowFactory.build()
    db_session.add(wf)
    await db_session.commit()
    return wf


@pytest.fixture
async def test_case(db_session: AsyncSession, workflow: Workflow) -> TestCase:
    """A saved test case whose mock inputs satisfy its assertions."""
    tc = TestCaseFactory.build(
        workflow_id=workflow.id,
        mock_step_inputs={
            "fetch": {"order_id": 42, "total": 99.5},
            "transform": {"a": 1, "b": 2},
            "notify": {"sent": True},
        },
        assertions=[
            {
                "id": "total-positive",
                "target": "fetch",
                "kind": "custom",
                "operator": "gt",
                "path": "total",
                "expected": 0,
            },
            {"id": "notified", "target": "notify", "kind": "equals", "expected": {"sent": True}},
        ],
    )
    db_session.add(tc)
    await db_session.commit()
    return tc


@pytest.fixture
def make_execution_service(
    db_session: AsyncSession,
) -> Callable[..., TestExecutionService]:
    """Build a TestExecutionService on the test session, optionally with an engine."""

    def _make(engine=None) -> TestExecutionService:
        return TestExecutionService(
            session=db_session,
            test_case_repo=TestCaseRepository(db_session),
            test_run_repo=TestRunRepository(db_session),
            step_result_repo=StepResultRepository(db_session),
            workflow_repo=WorkflowRepository(db_session),
            activity=ActivityService(),
            engine=engine,
        )

    return _make


@pytest.fixture
async def client(engine: AsyncEngine, settings: Settings) -> AsyncGenerator[AsyncClient]:
    """HTTP client against a fresh app, webhook credentials from the settings fixture."""
    app = create_app()
    app.dependency_overrides[get_webhook_authenticator] = lambda: WebhookAuthenticator(settings)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
