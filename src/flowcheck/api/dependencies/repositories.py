"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.flowcheck.api.dependencies.db import DBSession
from src.flowcheck.repositories import (
    ExecutionRepository,
    StepResultRepository,
    TestCaseRepository,
    TestRunRepository,
    WorkflowRepository,
)


def get_workflow_repository(session: DBSession) -> WorkflowRepository:
    return WorkflowRepository(session)


def get_execution_repository(session: DBSession) -> ExecutionRepository:
    return ExecutionRepository(session)


def get_test_case_repository(session: DBSession) -> TestCaseRepository:
    return TestCaseRepository(session)


def get_test_run_repository(session: DBSession) -> TestRunRepository:
    return TestRunRepository(session)


def get_step_result_repository(session: DBSession) -> StepResultRepository:
    return StepResultRepository(session)


WorkflowRepo = Annotated[WorkflowRepository, Depends(get_workflow_repository)]
ExecutionRepo = Annotated[ExecutionRepository, Depends(get_execution_repository)]
TestCaseRepo = Annotated[TestCaseRepository, Depends(get_test_case_repository)]
TestRunRepo = Annotated[TestRunRepository, Depends(get_test_run_repository)]
StepResultRepo = Annotated[StepResultRepository, Depends(get_step_result_repository)]
