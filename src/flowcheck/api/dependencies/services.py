"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.flowcheck.api.dependencies.db import DBSession
from src.flowcheck.api.dependencies.repositories import (
    ExecutionRepo,
    StepResultRepo,
    TestCaseRepo,
    TestRunRepo,
    WorkflowRepo,
)
from src.flowcheck.core.config import get_settings
from src.flowcheck.engine import get_execution_engine
from src.flowcheck.services import (
    ActivityService,
    TestCaseService,
    TestExecutionService,
    TriggerService,
    WebhookAuthenticator,
)


def get_activity_service() -> ActivityService:
    """Activity writes open their own sessions, independent of the request's."""
    return ActivityService()


ActivityServiceDep = Annotated[ActivityService, Depends(get_activity_service)]


def get_webhook_authenticator() -> WebhookAuthenticator:
    return WebhookAuthenticator(get_settings())


def get_trigger_service(
    workflow_repo: WorkflowRepo,
    execution_repo: ExecutionRepo,
    session: DBSession,
    activity: ActivityServiceDep,
) -> TriggerService:
    """Get trigger service wired to the configured engine (or none)."""
    return TriggerService(workflow_repo, execution_repo, session, activity, get_execution_engine())


def get_test_execution_service(
    session: DBSession,
    test_case_repo: TestCaseRepo,
    test_run_repo: TestRunRepo,
    step_result_repo: StepResultRepo,
    workflow_repo: WorkflowRepo,
    activity: ActivityServiceDep,
) -> TestExecutionService:
    return TestExecutionService(
        session=session,
        test_case_repo=test_case_repo,
        test_run_repo=test_run_repo,
        step_result_repo=step_result_repo,
        workflow_repo=workflow_repo,
        activity=activity,
        engine=get_execution_engine(),
    )


def get_test_case_service(
    test_case_repo: TestCaseRepo,
    test_run_repo: TestRunRepo,
    workflow_repo: WorkflowRepo,
    session: DBSession,
) -> TestCaseService:
    return TestCaseService(test_case_repo, test_run_repo, workflow_repo, session)


WebhookAuthenticatorDep = Annotated[WebhookAuthenticator, Depends(get_webhook_authenticator)]
TriggerServiceDep = Annotated[TriggerService, Depends(get_trigger_service)]
TestExecutionServiceDep = Annotated[TestExecutionService, Depends(get_test_execution_service)]
TestCaseServiceDep = Annotated[TestCaseService, Depends(get_test_case_service)]
