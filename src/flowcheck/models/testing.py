"""Test case, test run and step result models."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel

from src.flowcheck.models.base import json_column, utc_now
from src.flowcheck.models.enums import TestRunStatus, TestRunType

# At most one pending/running run per test case, enforced by the database
ACTIVE_RUN_PREDICATE = "status IN ('pending', 'running')"


class TestCase(SQLModel, table=True):
    """Reusable test definition for a workflow.

    ``assertions`` is an ordered list of assertion objects, each with an ``id``.
    ``expected_outputs`` maps a step id (or ``final``) to the expected output.
    """

    __test__ = False
    __tablename__ = "test_cases"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workflow_id: UUID = Field(foreign_key="workflows.id", index=True)
    name: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    mock_trigger_data: Any = Field(default=None, sa_column=json_column())
    mock_step_inputs: dict[str, Any] = Field(default_factory=dict, sa_column=json_column(False))
    expected_outputs: dict[str, Any] = Field(default_factory=dict, sa_column=json_column(False))
    assertions: list[dict[str, Any]] = Field(default_factory=list, sa_column=json_column(False))
    tags: list[str] = Field(default_factory=list, sa_column=json_column(False))
    is_active: bool = Field(default=True)
    last_run_at: datetime | None = Field(default=None)
    last_run_status: str | None = Field(default=None, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class TestRun(SQLModel, table=True):
    """One execution of a test case (or an ad hoc test) against mock inputs.

    Assertions are snapshotted at creation, so later edits to the test case
    never change a run that already exists.
    ``run_type`` and ``target_step_ids`` select which workflow steps execute.
    ``assertion_results`` holds one outcome per snapshotted assertion once the
    run has been evaluated.
    """

    __test__ = False
    __tablename__ = "test_runs"
    __table_args__ = (
        Index(
            "uq_test_runs_active_test_case",
            "test_case_id",
            unique=True,
            sqlite_where=text(ACTIVE_RUN_PREDICATE),
            postgresql_where=text(ACTIVE_RUN_PREDICATE),
        ),
        Index("ix_test_runs_workflow_created", "workflow_id", "created_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    test_case_id: UUID | None = Field(
        default=None, foreign_key="test_cases.id", index=True, ondelete="SET NULL"
    )
    workflow_id: UUID = Field(foreign_key="workflows.id", index=True)
    status: str = Field(default=TestRunStatus.PENDING.value, max_length=20)
    run_type: str = Field(default=TestRunType.FULL_WORKFLOW.value, max_length=20)
    target_step_ids: list[str] = Field(default_factory=list, sa_column=json_column(False))
    assertions: list[dict[str, Any]] = Field(default_factory=list, sa_column=json_column(False))
    mock_data: dict[str, Any] = Field(default_factory=dict, sa_column=json_column(False))
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    duration_ms: int | None = Field(default=None)
    total_assertions: int = Field(default=0)
    passed_count: int = Field(default=0)
    failed_count: int = Field(default=0)
    skipped_count: int = Field(default=0)
    error_count: int = Field(default=0)
    assertion_results: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=json_column(False)
    )
    error_message: str | None = Field(default=None, max_length=2000)
    error_step_id: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def mock_trigger_data(self) -> Any:
        return self.mock_data.get("trigger_data")

    @property
    def mock_step_inputs(self) -> dict[str, Any]:
        return self.mock_data.get("step_inputs") or {}


class StepResult(SQLModel, table=True):
    """Outcome of a single workflow step inside a test run."""

    __tablename__ = "test_step_results"
    __table_args__ = (
        UniqueConstraint("test_run_id", "step_id", name="uq_test_step_results_run_step"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    test_run_id: UUID = Field(foreign_key="test_runs.id", index=True, ondelete="CASCADE")
    step_id: str = Field(max_length=255)
    step_order: int = Field(default=0)
    status: str = Field(max_length=20)
    input_data: Any = Field(default=None, sa_column=json_column())
    actual_output: Any = Field(default=None, sa_column=json_column())
    expected_output: Any = Field(default=None, sa_column=json_column())
    message: str | None = Field(default=None, max_length=2000)
    duration_ms: int | None = Field(default=None)
    error: str | None = Field(default=None, max_length=2000)
    late: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
