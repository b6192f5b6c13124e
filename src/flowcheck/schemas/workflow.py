"""Workflow, webhook and execution schemas for API request/response."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, JsonValue


class WorkflowSummary(BaseModel):
    id: UUID
    name: str
    status: str

    model_config = {"from_attributes": True}


class WebhookInfo(BaseModel):
    """Response for webhook discovery (GET on the webhook URL)."""

    workflow_id: UUID
    name: str
    status: str
    webhook_active: bool


class WebhookTriggerResponse(BaseModel):
    """Response after a webhook delivery was accepted."""

    success: bool = True
    execution_id: UUID
    engine_execution_id: str | None = None
    message: str


class ExecutionRead(BaseModel):
    id: UUID
    workflow_id: UUID
    worker_id: UUID | None
    status: str
    trigger_type: str
    trigger_data: JsonValue
    engine_execution_id: str | None
    output_data: JsonValue
    error: str | None
    started_at: datetime
    completed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ExecutionComplete(BaseModel):
    """Completion callback sent by the execution engine."""

    status: Literal["succeeded", "failed"]
    output: JsonValue = None
    error: str | None = Field(default=None, max_length=2000)
