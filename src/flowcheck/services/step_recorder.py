"""Step result recording for test runs."""

from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.flowcheck.core.exceptions import NotFoundError, ValidationError
from src.flowcheck.core.logging import get_logger
from src.flowcheck.models import StepResult, StepResultStatus, TestRun, TestRunStatus
from src.flowcheck.repositories import StepResultRepository, TestRunRepository, WorkflowRepository
from src.flowcheck.services.assertion_evaluator import MISSING, Verdict, evaluate

logger = get_logger(__name__)

LATE_MESSAGE = "Recorded after the run was cancelled"


def step_status(verdicts: list[Verdict], error: str | None = None) -> StepResultStatus:
    """Collapse assertion verdicts for one step into the step's status."""
    if error:
        return StepResultStatus.ERROR
    if not verdicts:
        return StepResultStatus.SKIPPED
    if any(v.errored for v in verdicts):
        return StepResultStatus.ERROR
    if all(v.passed for v in verdicts):
        return StepResultStatus.PASSED
    return StepResultStatus.FAILED


def _expected_for(assertions: list[dict[str, Any]]) -> Any:
    if not assertions:
        return None
    if len(assertions) == 1:
        return assertions[0].get("expected")
    return [a.get("expected") for a in assertions]


class StepRecorder:
    """Persists per-step outcomes, evaluating the run's snapshotted assertions.

    Results for a run that already passed, failed or errored are dropped.
    Results for a cancelled run are kept as ``late`` rows and never change the
    run.
    """

    def __init__(
        self,
        test_run_repo: TestRunRepository,
        step_result_repo: StepResultRepository,
        workflow_repo: WorkflowRepository,
        session: AsyncSession,
    ):
        self.test_run_repo = test_run_repo
        self.step_result_repo = step_result_repo
        self.workflow_repo = workflow_repo
        self.session = session

    async def _step_order(self, run: TestRun, step_id: str) -> int:
        workflow = await self.workflow_repo.get_by_id(run.workflow_id)
        order = workflow.step_order(step_id) if workflow else None
        if order is None:
            raise ValidationError(f"Step '{step_id}' is not declared in the workflow")
        return order

    async def record(
        self,
        test_run_id: UUID,
        step_id: str,
        output: Any,
        duration_ms: int | None = None,
        *,
        error: str | None = None,
        input_data: Any = None,
    ) -> StepResult | None:
        """Record the output of one step.

        Args:
            output: The step's output, or MISSING if it produced none.

        Returns:
            The stored StepResult, or None when the result was rejected (run
            already complete, or the step was already recorded).

        Raises:
            NotFoundError: The run does not exist.
            ValidationError: The step is not part of the run's workflow.
        """
        run = await self.test_run_repo.get_by_id(test_run_id)
        if run is None:
            raise NotFoundError("Test run not found")

        order = await self._step_order(run, step_id)
        status = TestRunStatus(run.status)

        if status in (TestRunStatus.PASSED, TestRunStatus.FAILED, TestRunStatus.ERROR):
            logger.warning(
                "Step result rejected, run already complete",
                test_run_id=str(test_run_id),
                step_id=step_id,
                run_status=status.value,
            )
            return None

        existing = await self.step_result_repo.get_by_run_and_step(test_run_id, step_id)
        if existing is not None:
            logger.warning(
                "Duplicate step result ignored",
                test_run_id=str(test_run_id),
                step_id=step_id,
            )
            return None

        stored_output = None if output is MISSING else output
        targeting = [a for a in run.assertions if a.get("target") == step_id]

        if status == TestRunStatus.CANCELLED:
            result = StepResult(
                test_run_id=test_run_id,
                step_id=step_id,
                step_order=order,
                status=StepResultStatus.SKIPPED.value,
                input_data=input_data,
                actual_output=stored_output,
                expected_output=_expected_for(targeting),
                message=LATE_MESSAGE,
                duration_ms=duration_ms,
                error=error,
                late=True,
            )
        else:
            verdicts = [evaluate(a, output) for a in targeting]
            result_status = step_status(verdicts, error)
            failing = [v.message for v in verdicts if not v.passed]
            result = StepResult(
                test_run_id=test_run_id,
                step_id=step_id,
                step_order=order,
                status=result_status.value,
                input_data=input_data,
                actual_output=stored_output,
                expected_output=_expected_for(targeting),
                message="; ".join(failing) if failing else None,
                duration_ms=duration_ms,
                error=error,
            )

        try:
            self.step_result_repo.add(result)
            await self.session.commit()
        except IntegrityError:
            # Concurrent delivery of the same step won the unique constraint
            await self.session.rollback()
            logger.warning(
                "Duplicate step result ignored",
                test_run_id=str(test_run_id),
                step_id=step_id,
            )
            return None

        if not result.late:
            # A cancel may have committed between the status read and the insert
            current = await self.test_run_repo.get_by_id(test_run_id)
            if current is not None and current.status == TestRunStatus.CANCELLED.value:
                result.late = True
                result.status = StepResultStatus.SKIPPED.value
                result.message = LATE_MESSAGE
                await self.session.commit()

        logger.info(
            "Step result recorded",
            test_run_id=str(test_run_id),
            step_id=step_id,
            status=result.status,
            late=result.late,
        )
        return result
