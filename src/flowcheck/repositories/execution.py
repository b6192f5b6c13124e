"""Repository for Execution entity."""

from typing import Any
from uuid import UUID

from sqlmodel import select

from src.flowcheck.models import Execution, ExecutionStatus
from src.flowcheck.repositories.base import BaseRepository


class ExecutionRepository(BaseRepository[Execution]):
    """Repository for externally triggered workflow executions."""

    model = Execution

    async def list_by_workflow(
        self,
        workflow_id: UUID,
        cursor: str | None = None,
        limit: int = 50,
        status: ExecutionStatus | None = None,
    ) -> tuple[list[Execution], str | None, bool]:
        """List executions of a workflow, newest first.

        Returns:
            Tuple of (executions, next_cursor, has_more)
        """
        query = select(Execution).where(Execution.workflow_id == workflow_id)
        if status:
            query = query.where(Execution.status == status.value)
        return await self.paginate(query, cursor, limit, Execution.created_at)

    async def transition_status(
        self,
        id: UUID,
        from_statuses: list[ExecutionStatus],
        to_status: ExecutionStatus,
        **values: Any,
    ) -> bool:
        """Move an execution between statuses atomically.

        Returns:
            True if the execution was in one of ``from_statuses`` and was updated.
        """
        return await self.compare_and_set(
            id, [s.value for s in from_statuses], to_status.value, **values
        )

    async def set_engine_execution_id(self, id: UUID, engine_execution_id: str) -> bool:
        """Store the engine's reference while the execution is still running."""
        return await self.transition_status(
            id,
            [ExecutionStatus.RUNNING],
            ExecutionStatus.RUNNING,
            engine_execution_id=engine_execution_id,
        )
