"""Test case and test run factories for test data generation."""

from polyfactory import Use

from src.flowcheck.models import TestCase, TestRun, TestRunStatus, TestRunType
from tests.factories.base import BaseFactory, generate_uuid, utc_now


class TestCaseFactory(BaseFactory):
    """Factory for generating TestCase test data."""

    __test__ = False
    __model__ = TestCase

    id = Use(generate_uuid)
    workflow_id = None  # Required FK - must be set explicitly
    name = Use(lambda: f"Test case {generate_uuid().hex[:8]}")
    description = None
    mock_trigger_data = Use(lambda: {"order_id": 42})
    mock_step_inputs = Use(dict)
    expected_outputs = Use(dict)
    assertions = Use(list)
    tags = Use(list)
    is_active = True
    last_run_at = None
    last_run_status = None
    created_at = Use(utc_now)
    updated_at = Use(utc_now)

    @classmethod
    def inactive(cls, **kwargs):
        """Create a disabled test case."""
        return cls.build(is_active=False, **kwargs)


class TestRunFactory(BaseFactory):
    """Factory for generating TestRun test data. Pending by default."""

    __test__ = False
    __model__ = TestRun

    id = Use(generate_uuid)
    test_case_id = None
    workflow_id = None  # Required FK - must be set explicitly
    status = TestRunStatus.PENDING.value
    run_type = TestRunType.FULL_WORKFLOW.value
    target_step_ids = Use(list)
    assertions = Use(list)
    mock_data = Use(lambda: {"trigger_data": None, "step_inputs": {}})
    started_at = None
    completed_at = None
    duration_ms = None
    total_assertions = 0
    passed_count = 0
    failed_count = 0
    skipped_count = 0
    error_count = 0
    assertion_results = Use(list)
    error_message = None
    error_step_id = None
    created_at = Use(utc_now)

    @classmethod
    def running(cls, **kwargs):
        """Create a run that has already started."""
        return cls.build(status=TestRunStatus.RUNNING.value, started_at=utc_now(), **kwargs)
