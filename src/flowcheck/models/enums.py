"""Shared enums for models."""

from enum import Enum


class WorkflowStatus(str, Enum):
    """Lifecycle of a workflow definition. Only active workflows can be triggered."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"


class ExecutionStatus(str, Enum):
    """Execution status. running -> succeeded | failed, terminal states never change."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TriggerType(str, Enum):
    WEBHOOK = "webhook"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class TestRunStatus(str, Enum):
    """Test run status."""

    __test__ = False

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_TEST_RUN_STATUSES


ACTIVE_TEST_RUN_STATUSES = frozenset({TestRunStatus.PENDING, TestRunStatus.RUNNING})
TERMINAL_TEST_RUN_STATUSES = frozenset(
    {
        TestRunStatus.PASSED,
        TestRunStatus.FAILED,
        TestRunStatus.ERROR,
        TestRunStatus.CANCELLED,
    }
)


class TestRunType(str, Enum):
    """Which workflow steps a test run executes."""

    __test__ = False

    FULL_WORKFLOW = "full_workflow"
    SINGLE_STEP = "single_step"
    STEP_RANGE = "step_range"


class StepResultStatus(str, Enum):
    """Outcome of a single step within a test run."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


class AssertionKind(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    EXISTS = "exists"
    CUSTOM = "custom"


class ActivityType(str, Enum):
    """Activity log event types."""

    WORKFLOW_EXECUTION_START = "workflow_execution_start"
    WORKFLOW_EXECUTION_COMPLETE = "workflow_execution_complete"
    WORKFLOW_EXECUTION_FAILED = "workflow_execution_failed"
    TEST_RUN_STARTED = "test_run_started"
    TEST_RUN_COMPLETED = "test_run_completed"
    TEST_RUN_CANCELLED = "test_run_cancelled"
