"""Repository layer - data access abstraction."""

from src.flowcheck.repositories.activity_log import ActivityLogRepository
from src.flowcheck.repositories.base import BaseRepository
from src.flowcheck.repositories.execution import ExecutionRepository
from src.flowcheck.repositories.step_result import StepResultRepository
from src.flowcheck.repositories.test_case import TestCaseRepository
from src.flowcheck.repositories.test_run import TestRunRepository
from src.flowcheck.repositories.workflow import WorkflowRepository

__all__ = [
    "ActivityLogRepository",
    "BaseRepository",
    "ExecutionRepository",
    "StepResultRepository",
    "TestCaseRepository",
    "TestRunRepository",
    "WorkflowRepository",
]
