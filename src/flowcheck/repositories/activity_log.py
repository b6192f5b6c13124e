"""Repository for ActivityLog entity."""

from uuid import UUID

from sqlmodel import select

from src.flowcheck.models import ActivityLog
from src.flowcheck.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Repository for the activity feed."""

    model = ActivityLog

    async def list_by_workflow(
        self,
        workflow_id: UUID,
        cursor: str | None = None,
        limit: int = 50,
        type: str | None = None,
    ) -> tuple[list[ActivityLog], str | None, bool]:
        """List activity for a workflow, newest first.

        Returns:
            Tuple of (logs, next_cursor, has_more)
        """
        query = select(ActivityLog).where(ActivityLog.workflow_id == workflow_id)
        if type:
            query = query.where(ActivityLog.type == type)
        return await self.paginate(query, cursor, limit, ActivityLog.created_at)
