"""Workflow and execution models."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from src.flowcheck.models.base import json_column, utc_now
from src.flowcheck.models.enums import ExecutionStatus, TriggerType, WorkflowStatus


class Workflow(SQLModel, table=True):
    """A multi-step workflow definition.

    Steps are stored as an ordered list of ``{"id", "name", "type"}`` objects;
    list order is declaration order. Workflows are authored elsewhere, this
    service only reads them.
    """

    __tablename__ = "workflows"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255)
    status: str = Field(default=WorkflowStatus.DRAFT.value, max_length=20)
    steps: list[dict[str, Any]] = Field(default_factory=list, sa_column=json_column(False))
    assigned_worker_id: UUID | None = Field(default=None)
    engine_workflow_id: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def step_ids(self) -> list[str]:
        return [str(step["id"]) for step in self.steps]

    def step_order(self, step_id: str) -> int | None:
        """Zero-based declaration index of a step, None if it is not declared."""
        for index, step in enumerate(self.steps):
            if str(step["id"]) == step_id:
                return index
        return None


class Execution(SQLModel, table=True):
    """One externally triggered run of a workflow."""

    __tablename__ = "executions"
    __table_args__ = (Index("ix_executions_workflow_created", "workflow_id", "created_at"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workflow_id: UUID = Field(foreign_key="workflows.id", index=True)
    worker_id: UUID | None = Field(default=None)
    status: str = Field(default=ExecutionStatus.RUNNING.value, max_length=20)
    trigger_type: str = Field(default=TriggerType.WEBHOOK.value, max_length=20)
    trigger_data: Any = Field(default=None, sa_column=json_column())
    engine_execution_id: str | None = Field(default=None, max_length=255)
    output_data: Any = Field(default=None, sa_column=json_column())
    error: str | None = Field(default=None, max_length=2000)
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
