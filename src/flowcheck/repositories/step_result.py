"""Repository for StepResult entity."""

from typing import Any, cast
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.flowcheck.models import StepResult
from src.flowcheck.repositories.base import BaseRepository


class StepResultRepository(BaseRepository[StepResult]):
    model = StepResult

    async def list_by_run(self, test_run_id: UUID) -> list[StepResult]:
        """Step results of a run in workflow declaration order."""
        result = await self.session.execute(
            select(StepResult)
            .where(StepResult.test_run_id == test_run_id)
            .order_by(StepResult.step_order, StepResult.created_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def get_by_run_and_step(self, test_run_id: UUID, step_id: str) -> StepResult | None:
        result = await self.session.execute(
            select(StepResult).where(
                StepResult.test_run_id == test_run_id,
                StepResult.step_id == step_id,
            )
        )
        return result.scalar_one_or_none()

    async def delete_by_run(self, test_run_id: UUID) -> int:
        """Delete every step result of a run (no commit).

        Returns:
            Number of rows deleted
        """
        stmt = delete(StepResult).where(StepResult.test_run_id == test_run_id)  # type: ignore[arg-type]
        result = await self.session.execute(stmt)
        return cast(CursorResult[Any], result).rowcount or 0
