"""Tests for test run execution: dry runs, engine-backed runs, faults and cancellation."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.flowcheck.core.exceptions import ConflictError, EngineFault, ValidationError
from src.flowcheck.models import StepResultStatus, TestCase, TestRunStatus, TestRunType, Workflow
from src.flowcheck.repositories import StepResultRepository, TestCaseRepository, TestRunRepository
from tests.factories import TestCaseFactory, WorkflowFactory

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


class FakeEngine:
    """Engine double: returns canned step outputs, optionally failing on one step."""

    def __init__(self, outputs: dict[str, Any], fail_on: str | None = None, error=None):
        self.outputs = outputs
        self.fail_on = fail_on
        self.error = error or EngineFault("engine unavailable", transient=True)
        self.calls: list[tuple[str, Any]] = []
        self.before_step = AsyncMock()

    async def run_step(self, engine_workflow_id: str, step: dict[str, Any], input_data: Any) -> Any:
        self.calls.append((step["id"], input_data))
        await self.before_step(step["id"])
        if step["id"] == self.fail_on:
            raise self.error
        return self.outputs.get(step["id"])


async def test_dry_run_passes(make_execution_service, db_session: AsyncSession, test_case: TestCase):
    service = make_execution_service()
    run = await service.run_test(test_case.id)
    assert run.status == TestRunStatus.PENDING.value

    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.PASSED.value
    assert finished.total_assertions == 2
    assert finished.passed_count == 2
    assert finished.duration_ms is not None

    results = await StepResultRepository(db_session).list_by_run(run.id)
    assert [r.step_id for r in results] == ["fetch", "transform", "notify"]
    assert [r.status for r in results] == ["passed", "skipped", "passed"]

    stored_case = await TestCaseRepository(db_session).get_by_id(test_case.id)
    assert stored_case.last_run_status == TestRunStatus.PASSED.value
    assert stored_case.last_run_at is not None


async def test_assertion_mismatch_fails_run(
    make_execution_service, db_session: AsyncSession, workflow: Workflow
):
    tc = TestCaseFactory.build(
        workflow_id=workflow.id,
        mock_step_inputs={"transform": {"a": 1, "b": 2}},
        expected_outputs={"transform": {"a": 1, "b": 3}},
    )
    db_session.add(tc)
    await db_session.commit()

    service = make_execution_service()
    run = await service.run_test(tc.id)
    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.FAILED.value
    assert finished.failed_count == 1
    assert finished.assertions[0]["id"] == "expected-transform"
    transform = await StepResultRepository(db_session).get_by_run_and_step(run.id, "transform")
    assert transform.status == StepResultStatus.FAILED.value
    assert transform.expected_output == {"a": 1, "b": 3}


async def test_step_without_mock_input_fails_its_assertion(
    make_execution_service, db_session: AsyncSession, workflow: Workflow
):
    tc = TestCaseFactory.build(
        workflow_id=workflow.id,
        assertions=[{"id": "n", "target": "notify", "kind": "exists"}],
    )
    db_session.add(tc)
    await db_session.commit()

    service = make_execution_service()
    run = await service.run_test(tc.id)
    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.FAILED.value
    notify = await StepResultRepository(db_session).get_by_run_and_step(run.id, "notify")
    assert notify.actual_output is None
    assert "no output produced" in notify.message


async def test_engine_outputs_are_evaluated(make_execution_service, db_session: AsyncSession):
    workflow = WorkflowFactory.with_engine()
    db_session.add(workflow)
    tc = TestCaseFactory.build(
        workflow_id=workflow.id,
        mock_trigger_data={"order_id": 5},
        mock_step_inputs={"fetch": {"id": 5}},
        assertions=[
            {"id": "t", "target": "final", "kind": "custom", "operator": "has_property", "expected": "notify"},
        ],
    )
    db_session.add(tc)
    await db_session.commit()

    engine = FakeEngine({"fetch": {"ok": True}, "transform": {"ok": True}, "notify": {"sent": 1}})
    service = make_execution_service(engine)
    run = await service.run_test(tc.id)
    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.PASSED.value
    # Steps without a mock input receive the trigger data
    assert engine.calls == [
        ("fetch", {"id": 5}),
        ("transform", {"order_id": 5}),
        ("notify", {"order_id": 5}),
    ]


async def test_engine_fault_errors_run_and_stops(
    make_execution_service, db_session: AsyncSession, test_case: TestCase, workflow: Workflow
):
    workflow.engine_workflow_id = "wf-remote"
    db_session.add(workflow)
    await db_session.commit()

    engine = FakeEngine({"fetch": {"total": 10}}, fail_on="transform")
    service = make_execution_service(engine)
    run = await service.run_test(test_case.id)
    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.ERROR.value
    assert finished.error_step_id == "transform"
    assert "engine unavailable" in finished.error_message
    assert finished.passed_count == 1
    assert finished.skipped_count == 1
    assert [r["status"] for r in finished.assertion_results] == ["passed", "skipped"]

    results = await StepResultRepository(db_session).list_by_run(run.id)
    assert [(r.step_id, r.status) for r in results] == [
        ("fetch", "passed"),
        ("transform", "error"),
    ]
    assert [c[0] for c in engine.calls] == ["fetch", "transform"]

    stored_case = await TestCaseRepository(db_session).get_by_id(test_case.id)
    assert stored_case.last_run_status == TestRunStatus.ERROR.value


async def test_interrupted_task_releases_run(
    make_execution_service, db_session: AsyncSession, test_case: TestCase, workflow: Workflow
):
    workflow.engine_workflow_id = "wf-remote"
    db_session.add(workflow)
    await db_session.commit()

    engine = FakeEngine({"fetch": {"total": 1}})
    step_started = asyncio.Event()

    async def hang_on_fetch(step_id: str) -> None:
        step_started.set()
        await asyncio.Event().wait()

    engine.before_step.side_effect = hang_on_fetch
    service = make_execution_service(engine)
    run = await service.run_test(test_case.id)

    task = asyncio.create_task(service.execute_run(run.id))
    await step_started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    stored = await TestRunRepository(db_session).get_by_id(run.id)
    assert stored.status == TestRunStatus.ERROR.value
    assert stored.error_message == "Run interrupted"
    assert stored.completed_at is not None

    stored_case = await TestCaseRepository(db_session).get_by_id(test_case.id)
    assert stored_case.last_run_status == TestRunStatus.ERROR.value

    # The active-run slot is free again
    again = await make_execution_service().run_test(test_case.id)
    assert again.status == TestRunStatus.PENDING.value



async def test_unexpected_error_marks_run_error(
    make_execution_service, db_session: AsyncSession, test_case: TestCase, workflow: Workflow
):
    workflow.engine_workflow_id = "wf-remote"
    db_session.add(workflow)
    await db_session.commit()

    engine = FakeEngine({}, fail_on="fetch", error=RuntimeError("kaboom"))
    service = make_execution_service(engine)
    run = await service.run_test(test_case.id)
    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.ERROR.value
    assert "kaboom" in finished.error_message


async def test_cancel_before_execution(make_execution_service, test_case: TestCase):
    service = make_execution_service()
    run = await service.run_test(test_case.id)
    cancelled = await service.cancel_test_run(run.id)
    assert cancelled.status == TestRunStatus.CANCELLED.value

    finished = await service.execute_run(run.id)
    assert finished.status == TestRunStatus.CANCELLED.value
    assert await service.get_test_step_results(run.id) == []


async def test_cancel_mid_run_stops_before_next_step(
    make_execution_service, db_session: AsyncSession, test_case: TestCase, workflow: Workflow
):
    workflow.engine_workflow_id = "wf-remote"
    db_session.add(workflow)
    await db_session.commit()

    engine = FakeEngine({"fetch": {"total": 1}, "transform": {}, "notify": {"sent": True}})
    service = make_execution_service(engine)
    run = await service.run_test(test_case.id)

    async def cancel_during_transform(step_id: str) -> None:
        if step_id == "transform":
            await service.cancel_test_run(run.id)

    engine.before_step.side_effect = cancel_during_transform
    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.CANCELLED.value
    assert [c[0] for c in engine.calls] == ["fetch", "transform"]
    results = await service.get_test_step_results(run.id)
    assert [(r.step_id, r.late) for r in results] == [("fetch", False), ("transform", True)]


async def test_cancel_finished_run_is_noop(make_execution_service, test_case: TestCase):
    service = make_execution_service()
    run = await service.run_test(test_case.id)
    await service.execute_run(run.id)

    result = await service.cancel_test_run(run.id)
    assert result.status == TestRunStatus.PASSED.value


async def test_second_run_conflicts(make_execution_service, test_case: TestCase):
    service = make_execution_service()
    first = await service.run_test(test_case.id)
    with pytest.raises(ConflictError) as exc_info:
        await service.run_test(test_case.id)
    assert exc_info.value.active_run_id == first.id


async def test_inactive_test_case_cannot_run(
    make_execution_service, db_session: AsyncSession, workflow: Workflow
):
    tc = TestCaseFactory.inactive(workflow_id=workflow.id)
    db_session.add(tc)
    await db_session.commit()

    with pytest.raises(ValidationError, match="disabled"):
        await make_execution_service().run_test(tc.id)


async def test_run_snapshot_ignores_later_edits(
    make_execution_service, db_session: AsyncSession, test_case: TestCase
):
    service = make_execution_service()
    run = await service.run_test(test_case.id)

    test_case.assertions = []
    db_session.add(test_case)
    await db_session.commit()

    finished = await service.execute_run(run.id)
    assert finished.total_assertions == 2
    assert [a["id"] for a in finished.assertions] == ["total-positive", "notified"]


async def test_ad_hoc_run(make_execution_service, workflow: Workflow):
    service = make_execution_service()
    run = await service.run_ad_hoc(
        workflow.id,
        mock_trigger_data={"x": 1},
        mock_step_inputs={"fetch": [1, 2, 3]},
        assertions=[{"target": "fetch", "kind": "contains", "expected": 2}],
    )
    assert run.test_case_id is None
    assert run.assertions[0]["id"]

    finished = await service.execute_run(run.id)
    assert finished.status == TestRunStatus.PASSED.value


async def test_run_stores_each_assertion_outcome(make_execution_service, workflow: Workflow):
    service = make_execution_service()
    run = await service.run_ad_hoc(
        workflow.id,
        mock_step_inputs={"fetch": {"x": 1}},
        assertions=[
            {
                "id": "x-is-two",
                "target": "final",
                "kind": "equals",
                "path": "fetch.x",
                "expected": 2,
            },
            {"id": "fetched", "target": "fetch", "kind": "exists"},
        ],
    )
    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.FAILED.value
    by_id = {r["assertion_id"]: r for r in finished.assertion_results}
    assert by_id["x-is-two"]["status"] == "failed"
    assert by_id["x-is-two"]["target"] == "final"
    assert by_id["x-is-two"]["actual"] == 1
    assert by_id["x-is-two"]["expected"] == 2
    assert "got 1" in by_id["x-is-two"]["message"]
    assert by_id["fetched"]["status"] == "passed"


async def test_single_step_run_executes_only_its_target(
    make_execution_service, db_session: AsyncSession, test_case: TestCase, workflow: Workflow
):
    workflow.engine_workflow_id = "wf-remote"
    db_session.add(workflow)
    await db_session.commit()

    engine = FakeEngine({"fetch": {"total": 10}, "transform": {}, "notify": {"sent": True}})
    service = make_execution_service(engine)
    run = await service.run_test(
        test_case.id, run_type=TestRunType.SINGLE_STEP, target_step_ids=["fetch"]
    )
    assert run.run_type == TestRunType.SINGLE_STEP.value
    assert run.target_step_ids == ["fetch"]
    # The notify assertion can never be evaluated, so it is left out of the snapshot
    assert [a["id"] for a in run.assertions] == ["total-positive"]

    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.PASSED.value
    assert finished.total_assertions == 1
    assert [c[0] for c in engine.calls] == ["fetch"]
    results = await StepResultRepository(db_session).list_by_run(run.id)
    assert [r.step_id for r in results] == ["fetch"]


async def test_step_range_run_follows_declaration_order(
    make_execution_service, db_session: AsyncSession, workflow: Workflow
):
    service = make_execution_service()
    run = await service.run_ad_hoc(
        workflow.id,
        mock_step_inputs={"fetch": {"id": 1}, "notify": {"sent": True}},
        assertions=[{"id": "sent", "target": "notify", "kind": "exists", "path": "sent"}],
        run_type=TestRunType.STEP_RANGE,
        target_step_ids=["notify", "fetch"],
    )
    assert run.target_step_ids == ["fetch", "notify"]

    finished = await service.execute_run(run.id)

    assert finished.status == TestRunStatus.PASSED.value
    results = await StepResultRepository(db_session).list_by_run(run.id)
    assert [r.step_id for r in results] == ["fetch", "notify"]


async def test_invalid_step_targets_create_no_run(make_execution_service, test_case: TestCase):
    service = make_execution_service()
    with pytest.raises(ValidationError, match="ghost"):
        await service.run_test(
            test_case.id, run_type=TestRunType.SINGLE_STEP, target_step_ids=["ghost"]
        )

    run = await service.run_test(test_case.id)
    assert run.run_type == TestRunType.FULL_WORKFLOW.value
    assert run.target_step_ids == []



async def test_delete_active_run_cancels(
    make_execution_service, db_session: AsyncSession, test_case: TestCase
):
    service = make_execution_service()
    run = await service.run_test(test_case.id)

    result, deleted = await service.delete_test_run(run.id)
    assert deleted is False
    assert result.status == TestRunStatus.CANCELLED.value
    assert await TestRunRepository(db_session).get_by_id(run.id) is not None


async def test_delete_finished_run_removes_results(
    make_execution_service, db_session: AsyncSession, test_case: TestCase
):
    service = make_execution_service()
    run = await service.run_test(test_case.id)
    await service.execute_run(run.id)

    _, deleted = await service.delete_test_run(run.id)
    assert deleted is True
    assert await TestRunRepository(db_session).get_by_id(run.id) is None
    assert await StepResultRepository(db_session).list_by_run(run.id) == []
