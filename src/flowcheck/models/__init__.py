"""Model exports.

Import from here: `from src.flowcheck.models import Workflow, TestRun`
"""

# Enums
from src.flowcheck.models.enums import (
    ACTIVE_TEST_RUN_STATUSES,
    TERMINAL_TEST_RUN_STATUSES,
    ActivityType,
    AssertionKind,
    ExecutionStatus,
    StepResultStatus,
    TestRunStatus,
    TestRunType,
    TriggerType,
    WorkflowStatus,
)

# Models
from src.flowcheck.models.activity import ActivityLog
from src.flowcheck.models.testing import StepResult, TestCase, TestRun
from src.flowcheck.models.workflow import Execution, Workflow

__all__ = [
    # Enums
    "ACTIVE_TEST_RUN_STATUSES",
    "TERMINAL_TEST_RUN_STATUSES",
    "ActivityType",
    "AssertionKind",
    "ExecutionStatus",
    "StepResultStatus",
    "TestRunStatus",
    "TestRunType",
    "TriggerType",
    "WorkflowStatus",
    # Models
    "ActivityLog",
    "Execution",
    "StepResult",
    "TestCase",
    "TestRun",
    "Workflow",
]
