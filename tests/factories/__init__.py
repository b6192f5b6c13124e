"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import WorkflowFactory, TestCaseFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.testing import TestCaseFactory, TestRunFactory
from tests.factories.workflow import ExecutionFactory, WorkflowFactory, default_steps

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # Workflow
    "WorkflowFactory",
    "ExecutionFactory",
    "default_steps",
    # Testing
    "TestCaseFactory",
    "TestRunFactory",
]
