"""Execution endpoints - engine completion callback and read access."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.flowcheck.api.dependencies import EngineCallback, OperatorAccess, TriggerServiceDep
from src.flowcheck.models import ExecutionStatus
from src.flowcheck.schemas.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PaginatedResponse
from src.flowcheck.schemas.workflow import ExecutionComplete, ExecutionRead

router = APIRouter(tags=["executions"])


@router.post(
    "/executions/{execution_id}/complete",
    response_model=ExecutionRead,
    summary="Complete execution",
    description=(
        "Engine callback reporting the outcome of an execution. Signed like "
        "webhooks. A callback for an already finished execution changes nothing."
    ),
    responses={
        401: {"description": "Callback authentication failed"},
        404: {"description": "Execution not found"},
    },
)
async def complete_execution(
    execution_id: UUID,
    body: ExecutionComplete,
    service: TriggerServiceDep,
    _auth: EngineCallback,
) -> ExecutionRead:
    execution = await service.complete_execution(
        execution_id, ExecutionStatus(body.status), body.output, body.error
    )
    return ExecutionRead.model_validate(execution)


@router.get(
    "/executions/{execution_id}",
    response_model=ExecutionRead,
    summary="Get execution",
    dependencies=[OperatorAccess],
    responses={404: {"description": "Execution not found"}},
)
async def get_execution(execution_id: UUID, service: TriggerServiceDep) -> ExecutionRead:
    return ExecutionRead.model_validate(await service.get_execution(execution_id))


@router.get(
    "/workflows/{workflow_id}/executions",
    response_model=PaginatedResponse[ExecutionRead],
    summary="List executions",
    description="List a workflow's executions, newest first, with cursor-based pagination.",
    dependencies=[OperatorAccess],
    responses={404: {"description": "Workflow not found"}},
)
async def list_executions(
    workflow_id: UUID,
    service: TriggerServiceDep,
    status: Annotated[ExecutionStatus | None, Query(description="Filter by status")] = None,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Max items to return")
    ] = DEFAULT_PAGE_SIZE,
) -> PaginatedResponse[ExecutionRead]:
    executions, next_cursor, has_more = await service.list_executions(
        workflow_id, cursor, limit, status
    )
    return PaginatedResponse(
        items=[ExecutionRead.model_validate(e) for e in executions],
        next_cursor=next_cursor,
        has_more=has_more,
    )
