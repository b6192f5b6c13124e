"""Test case endpoints - CRUD and starting runs."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from src.flowcheck.api.dependencies import (
    OperatorAccess,
    TestCaseServiceDep,
    TestExecutionServiceDep,
)
from src.flowcheck.core.shutdown import request_tracker
from src.flowcheck.schemas.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PaginatedResponse
from src.flowcheck.schemas.test_case import TestCaseCreate, TestCaseRead, TestCaseUpdate
from src.flowcheck.schemas.test_run import TestRunOptions, TestRunRead
from src.flowcheck.services.test_execution_service import execute_test_run_in_background

router = APIRouter(prefix="/test-cases", tags=["test-cases"], dependencies=[OperatorAccess])


@router.get(
    "",
    response_model=PaginatedResponse[TestCaseRead],
    summary="List test cases",
    description="List test cases, newest first, with optional filters.",
)
async def list_test_cases(
    service: TestCaseServiceDep,
    workflow_id: Annotated[UUID | None, Query()] = None,
    is_active: Annotated[bool | None, Query()] = None,
    tag: Annotated[str | None, Query(max_length=100)] = None,
    last_run_status: Annotated[str | None, Query(max_length=20)] = None,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Max items to return")
    ] = DEFAULT_PAGE_SIZE,
) -> PaginatedResponse[TestCaseRead]:
    test_cases, next_cursor, has_more = await service.list_test_cases(
        cursor,
        limit,
        workflow_id=workflow_id,
        is_active=is_active,
        tag=tag,
        last_run_status=last_run_status,
    )
    return PaginatedResponse(
        items=[TestCaseRead.model_validate(tc) for tc in test_cases],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.post(
    "",
    response_model=TestCaseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create test case",
    responses={404: {"description": "Workflow not found"}},
)
async def create_test_case(data: TestCaseCreate, service: TestCaseServiceDep) -> TestCaseRead:
    return TestCaseRead.model_validate(await service.create_test_case(data))


@router.get(
    "/{test_case_id}",
    response_model=TestCaseRead,
    summary="Get test case",
    responses={404: {"description": "Test case not found"}},
)
async def get_test_case(test_case_id: UUID, service: TestCaseServiceDep) -> TestCaseRead:
    return TestCaseRead.model_validate(await service.get_test_case(test_case_id))


@router.patch(
    "/{test_case_id}",
    response_model=TestCaseRead,
    summary="Update test case",
    description="Partial update. Assertions sent without an id get one; given ids are kept.",
    responses={404: {"description": "Test case not found"}},
)
async def update_test_case(
    test_case_id: UUID, data: TestCaseUpdate, service: TestCaseServiceDep
) -> TestCaseRead:
    return TestCaseRead.model_validate(await service.update_test_case(test_case_id, data))


@router.delete(
    "/{test_case_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete test case",
    responses={
        404: {"description": "Test case not found"},
        409: {"description": "Test case has an active run"},
    },
)
async def delete_test_case(test_case_id: UUID, service: TestCaseServiceDep) -> Response:
    await service.delete_test_case(test_case_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{test_case_id}/runs",
    response_model=TestRunRead,
    status_code=status.HTTP_201_CREATED,
    summary="Run test case",
    description=(
        "Create a pending run and execute it in the background. The optional body "
        "limits the run to a single step or a set of steps."
    ),
    responses={
        400: {"description": "Test case is disabled or the step targets are invalid"},
        404: {"description": "Test case not found"},
        409: {"description": "The test case already has an active run"},
    },
)
async def run_test_case(
    test_case_id: UUID,
    service: TestExecutionServiceDep,
    options: TestRunOptions | None = None,
) -> TestRunRead:
    options = options or TestRunOptions()
    run = await service.run_test(
        test_case_id, run_type=options.run_type, target_step_ids=list(options.target_step_ids)
    )
    request_tracker.spawn(execute_test_run_in_background(run.id), name=f"test-run:{run.id}")
    return TestRunRead.model_validate(run)
