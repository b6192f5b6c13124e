from src.flowcheck.schemas.pagination import PaginatedResponse
from src.flowcheck.schemas.test_case import (
    AssertionSpec,
    TestCaseCreate,
    TestCaseRead,
    TestCaseSummary,
    TestCaseUpdate,
)
from src.flowcheck.schemas.test_run import (
    AdHocTestRunCreate,
    StepResultAck,
    StepResultCallback,
    StepResultRead,
    TestRunDeleteResult,
    TestRunDetail,
    TestRunOptions,
    TestRunRead,
)
from src.flowcheck.schemas.workflow import (
    ExecutionComplete,
    ExecutionRead,
    WebhookInfo,
    WebhookTriggerResponse,
    WorkflowSummary,
)

__all__ = [
    "PaginatedResponse",
    # Test cases
    "AssertionSpec",
    "TestCaseCreate",
    "TestCaseRead",
    "TestCaseSummary",
    "TestCaseUpdate",
    # Test runs
    "AdHocTestRunCreate",
    "StepResultAck",
    "StepResultCallback",
    "StepResultRead",
    "TestRunDeleteResult",
    "TestRunDetail",
    "TestRunOptions",
    "TestRunRead",
    # Workflows and executions
    "ExecutionComplete",
    "ExecutionRead",
    "WebhookInfo",
    "WebhookTriggerResponse",
    "WorkflowSummary",
]
