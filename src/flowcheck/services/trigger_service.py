"""Workflow trigger dispatch and execution completion."""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.flowcheck.core.exceptions import (
    AuthenticationError,
    EngineFault,
    NotFoundError,
    ValidationError,
)
from src.flowcheck.core.logging import bind_execution_context, get_logger
from src.flowcheck.engine import ExecutionEngine
from src.flowcheck.models import (
    ActivityType,
    Execution,
    ExecutionStatus,
    TriggerType,
    Workflow,
    WorkflowStatus,
)
from src.flowcheck.models.base import utc_now
from src.flowcheck.repositories import ExecutionRepository, WorkflowRepository
from src.flowcheck.services.activity_service import ActivityService
from src.flowcheck.services.webhook_auth import AuthResult

logger = get_logger(__name__)


def build_engine_payload(execution: Execution, payload: Any) -> dict[str, Any]:
    """Payload handed to the engine: ids first, then the caller's fields.

    A non-object payload is passed through under ``data``.
    """
    base: dict[str, Any] = {
        "executionId": str(execution.id),
        "workflowId": str(execution.workflow_id),
    }
    if isinstance(payload, dict):
        return {**base, **payload}
    return {**base, "data": payload}


class TriggerService:
    """Turns authenticated trigger requests into execution records.

    The execution row is committed before the engine is called, so every
    accepted trigger leaves exactly one record whatever the engine does.
    """

    def __init__(
        self,
        workflow_repo: WorkflowRepository,
        execution_repo: ExecutionRepository,
        session: AsyncSession,
        activity: ActivityService,
        engine: ExecutionEngine | None,
    ):
        self.workflow_repo = workflow_repo
        self.execution_repo = execution_repo
        self.session = session
        self.activity = activity
        self.engine = engine

    async def _get_workflow(self, workflow_id: UUID) -> Workflow:
        workflow = await self.workflow_repo.get_by_id(workflow_id)
        if workflow is None:
            raise NotFoundError("Workflow not found")
        return workflow

    async def trigger(
        self,
        workflow_id: UUID,
        payload: Any,
        auth_result: AuthResult,
        trigger_type: TriggerType = TriggerType.WEBHOOK,
        worker_id: UUID | None = None,
    ) -> Execution:
        """Record an execution and dispatch it to the engine if one is configured.

        Returns:
            The execution. ``engine_execution_id`` is set when the engine accepted it.

        Raises:
            AuthenticationError: auth_result was rejected (no record created).
            NotFoundError: Unknown workflow (no record created).
            ValidationError: Workflow is not active (no record created).
            EngineFault: The engine failed; the execution is stored as failed.
        """
        if not auth_result.accepted:
            reason = auth_result.reason.value if auth_result.reason else None
            logger.warning("Webhook rejected", workflow_id=str(workflow_id), reason=reason)
            raise AuthenticationError("Webhook authentication failed", reason=reason)

        workflow = await self._get_workflow(workflow_id)
        if workflow.status != WorkflowStatus.ACTIVE.value:
            raise ValidationError(f"Workflow is not active (status: {workflow.status})")

        execution = Execution(
            workflow_id=workflow.id,
            worker_id=worker_id or workflow.assigned_worker_id,
            status=ExecutionStatus.RUNNING.value,
            trigger_type=trigger_type.value,
            trigger_data=payload,
            started_at=utc_now(),
        )
        self.execution_repo.add(execution)
        await self.session.commit()
        bind_execution_context(execution.id, workflow.id)

        logger.info(
            "Execution recorded",
            trigger_type=trigger_type.value,
            auth=auth_result.outcome.value,
        )
        self.activity.emit(
            ActivityType.WORKFLOW_EXECUTION_START,
            workflow_id=workflow.id,
            execution_id=execution.id,
            data={"trigger_type": trigger_type.value},
        )

        if self.engine is None or not workflow.engine_workflow_id:
            logger.info("No execution engine configured, execution recorded only")
            return execution

        try:
            engine_execution = await self.engine.execute(
                workflow.engine_workflow_id, build_engine_payload(execution, payload)
            )
        except EngineFault as e:
            await self._mark_dispatch_failed(execution, e.message)
            raise EngineFault(
                f"Failed to start workflow execution: {e.message}",
                transient=e.transient,
                execution_id=execution.id,
            ) from e
        except Exception as e:
            # Anything an adapter let through still leaves the execution terminal
            await self._mark_dispatch_failed(execution, f"Unexpected engine error: {e!s}")
            raise EngineFault(
                f"Failed to start workflow execution: {e!s}",
                execution_id=execution.id,
            ) from e

        await self.execution_repo.set_engine_execution_id(execution.id, engine_execution.id)
        await self.session.commit()
        return await self.execution_repo.get_by_id(execution.id) or execution

    async def _mark_dispatch_failed(self, execution: Execution, error: str) -> None:
        await self.execution_repo.transition_status(
            execution.id,
            [ExecutionStatus.RUNNING],
            ExecutionStatus.FAILED,
            error=error[:2000],
            completed_at=utc_now(),
        )
        await self.session.commit()
        logger.error(
            "Engine dispatch failed",
            execution_id=str(execution.id),
            workflow_id=str(execution.workflow_id),
            error=error,
        )
        self.activity.emit(
            ActivityType.WORKFLOW_EXECUTION_FAILED,
            workflow_id=execution.workflow_id,
            execution_id=execution.id,
            data={"error": error[:500]},
        )

    async def complete_execution(
        self,
        execution_id: UUID,
        status: ExecutionStatus,
        output: Any = None,
        error: str | None = None,
    ) -> Execution:
        """Apply the engine's completion callback.

        A callback for an execution that is already terminal is a no-op and
        returns the stored record unchanged.
        """
        if status == ExecutionStatus.RUNNING:
            raise ValidationError("Completion status must be succeeded or failed")

        execution = await self.execution_repo.get_by_id(execution_id)
        if execution is None:
            raise NotFoundError("Execution not found")

        applied = await self.execution_repo.transition_status(
            execution_id,
            [ExecutionStatus.RUNNING],
            status,
            output_data=output,
            error=error[:2000] if error else None,
            completed_at=utc_now(),
        )
        await self.session.commit()

        if not applied:
            logger.info(
                "Completion ignored, execution already terminal",
                execution_id=str(execution_id),
                status=execution.status,
            )
        else:
            logger.info("Execution completed", execution_id=str(execution_id), status=status.value)
            self.activity.emit(
                ActivityType.WORKFLOW_EXECUTION_COMPLETE
                if status == ExecutionStatus.SUCCEEDED
                else ActivityType.WORKFLOW_EXECUTION_FAILED,
                workflow_id=execution.workflow_id,
                execution_id=execution_id,
                data={"status": status.value, "error": error},
            )

        return await self.execution_repo.get_by_id(execution_id) or execution

    async def get_webhook_info(self, workflow_id: UUID) -> dict[str, Any]:
        workflow = await self._get_workflow(workflow_id)
        return {
            "workflow_id": workflow.id,
            "name": workflow.name,
            "status": workflow.status,
            "webhook_active": workflow.status == WorkflowStatus.ACTIVE.value,
        }

    async def get_execution(self, execution_id: UUID) -> Execution:
        execution = await self.execution_repo.get_by_id(execution_id)
        if execution is None:
            raise NotFoundError("Execution not found")
        return execution

    async def list_executions(
        self,
        workflow_id: UUID,
        cursor: str | None = None,
        limit: int = 50,
        status: ExecutionStatus | None = None,
    ) -> tuple[list[Execution], str | None, bool]:
        await self._get_workflow(workflow_id)
        return await self.execution_repo.list_by_workflow(workflow_id, cursor, limit, status)
