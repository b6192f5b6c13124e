"""Activity log model for workflow and test run events."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from src.flowcheck.models.base import json_column, utc_now


class ActivityLog(SQLModel, table=True):
    """Append-only feed of execution and test run events.

    Written best-effort; a missing entry never invalidates the event it describes.
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_workflow_created", "workflow_id", "created_at"),
        Index("ix_activity_logs_type_created", "type", "created_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    type: str = Field(max_length=50)  # ActivityType value
    workflow_id: UUID | None = Field(default=None)
    execution_id: UUID | None = Field(default=None)
    data: dict[str, Any] | None = Field(default=None, sa_column=json_column())
    created_at: datetime = Field(default_factory=utc_now)
