"""Tests for the Alembic migration runner against a fresh SQLite database."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

from src.flowcheck.core.db import run_migrations_async

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def test_initial_migration_creates_schema(tmp_path: Path):
    db_file = tmp_path / "migrated.db"

    await run_migrations_async(database_url=f"sqlite+aiosqlite:///{db_file}")

    engine = create_engine(f"sqlite:///{db_file}")
    try:
        inspector = inspect(engine)
        assert set(inspector.get_table_names()) >= {
            "workflows",
            "executions",
            "test_cases",
            "test_runs",
            "test_step_results",
            "activity_logs",
        }
        run_indexes = {ix["name"] for ix in inspector.get_indexes("test_runs")}
        assert "uq_test_runs_active_test_case" in run_indexes
        run_columns = {c["name"] for c in inspector.get_columns("test_runs")}
        assert {"run_type", "target_step_ids", "assertion_results"} <= run_columns
        step_uniques = {uc["name"] for uc in inspector.get_unique_constraints("test_step_results")}
        assert "uq_test_step_results_run_step" in step_uniques
    finally:
        engine.dispose()
