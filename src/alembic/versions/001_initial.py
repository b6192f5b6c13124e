"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-16 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
ACTIVE_RUN_PREDICATE = "status IN ('pending', 'running')"


def upgrade() -> None:
    # 1. Workflows
    op.create_table(
        "workflows",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("steps", JSON_TYPE, nullable=False),
        sa.Column("assigned_worker_id", sa.Uuid(), nullable=True),
        sa.Column(
            "engine_workflow_id", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # 2. Executions
    op.create_table(
        "executions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workflow_id", sa.Uuid(), nullable=False),
        sa.Column("worker_id", sa.Uuid(), nullable=True),
        sa.Column("status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("trigger_type", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("trigger_data", JSON_TYPE, nullable=True),
        sa.Column(
            "engine_execution_id", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True
        ),
        sa.Column("output_data", JSON_TYPE, nullable=True),
        sa.Column("error", sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflows.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_executions_workflow_id", "executions", ["workflow_id"])
    op.create_index(
        "ix_executions_workflow_created", "executions", ["workflow_id", "created_at"]
    )

    # 3. Test cases
    op.create_table(
        "test_cases",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("workflow_id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=True),
        sa.Column("mock_trigger_data", JSON_TYPE, nullable=True),
        sa.Column("mock_step_inputs", JSON_TYPE, nullable=False),
        sa.Column("expected_outputs", JSON_TYPE, nullable=False),
        sa.Column("assertions", JSON_TYPE, nullable=False),
        sa.Column("tags", JSON_TYPE, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_run_at", sa.DateTime(), nullable=True),
        sa.Column("last_run_status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflows.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_cases_workflow_id", "test_cases", ["workflow_id"])

    # 4. Test runs - at most one pending/running run per test case
    op.create_table(
        "test_runs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("test_case_id", sa.Uuid(), nullable=True),
        sa.Column("workflow_id", sa.Uuid(), nullable=False),
        sa.Column("status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column(
            "run_type",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="full_workflow",
        ),
        sa.Column("target_step_ids", JSON_TYPE, nullable=False),
        sa.Column("assertions", JSON_TYPE, nullable=False),
        sa.Column("mock_data", JSON_TYPE, nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("total_assertions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("passed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("skipped_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("assertion_results", JSON_TYPE, nullable=False),
        sa.Column("error_message", sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=True),
        sa.Column("error_step_id", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["test_case_id"], ["test_cases.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["workflow_id"], ["workflows.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_runs_test_case_id", "test_runs", ["test_case_id"])
    op.create_index("ix_test_runs_workflow_id", "test_runs", ["workflow_id"])
    op.create_index("ix_test_runs_workflow_created", "test_runs", ["workflow_id", "created_at"])
    op.create_index(
        "uq_test_runs_active_test_case",
        "test_runs",
        ["test_case_id"],
        unique=True,
        sqlite_where=sa.text(ACTIVE_RUN_PREDICATE),
        postgresql_where=sa.text(ACTIVE_RUN_PREDICATE),
    )

    # 5. Step results
    op.create_table(
        "test_step_results",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("test_run_id", sa.Uuid(), nullable=False),
        sa.Column("step_id", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("status", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("input_data", JSON_TYPE, nullable=True),
        sa.Column("actual_output", JSON_TYPE, nullable=True),
        sa.Column("expected_output", JSON_TYPE, nullable=True),
        sa.Column("message", sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("error", sqlmodel.sql.sqltypes.AutoString(length=2000), nullable=True),
        sa.Column("late", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["test_run_id"], ["test_runs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("test_run_id", "step_id", name="uq_test_step_results_run_step"),
    )
    op.create_index("ix_test_step_results_test_run_id", "test_step_results", ["test_run_id"])

    # 6. Activity log
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("type", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("workflow_id", sa.Uuid(), nullable=True),
        sa.Column("execution_id", sa.Uuid(), nullable=True),
        sa.Column("data", JSON_TYPE, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_activity_logs_workflow_created", "activity_logs", ["workflow_id", "created_at"]
    )
    op.create_index("ix_activity_logs_type_created", "activity_logs", ["type", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_type_created", table_name="activity_logs")
    op.drop_index("ix_activity_logs_workflow_created", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_test_step_results_test_run_id", table_name="test_step_results")
    op.drop_table("test_step_results")
    op.drop_index("uq_test_runs_active_test_case", table_name="test_runs")
    op.drop_index("ix_test_runs_workflow_created", table_name="test_runs")
    op.drop_index("ix_test_runs_workflow_id", table_name="test_runs")
    op.drop_index("ix_test_runs_test_case_id", table_name="test_runs")
    op.drop_table("test_runs")
    op.drop_index("ix_test_cases_workflow_id", table_name="test_cases")
    op.drop_table("test_cases")
    op.drop_index("ix_executions_workflow_created", table_name="executions")
    op.drop_index("ix_executions_workflow_id", table_name="executions")
    op.drop_table("executions")
    op.drop_table("workflows")
