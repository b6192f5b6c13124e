"""Activity feed - records execution and test run events."""

import contextlib
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncEngine

from src.flowcheck.core.db import get_session
from src.flowcheck.core.logging import get_logger
from src.flowcheck.core.shutdown import request_tracker
from src.flowcheck.models import ActivityLog, ActivityType
from src.flowcheck.repositories import ActivityLogRepository

logger = get_logger(__name__)


class ActivityService:
    """Service for recording activity log entries.

    Fire-and-forget design: every write uses its own session, so a failed log
    write never rolls back (or blocks) the operation it describes.
    """

    def __init__(self, engine: AsyncEngine | None = None):
        self.engine = engine

    async def log_event(
        self,
        type: ActivityType | str,
        workflow_id: UUID | None = None,
        execution_id: UUID | None = None,
        data: dict[str, Any] | None = None,
    ) -> ActivityLog | None:
        """Record an activity entry. Failures are logged but do not raise.

        Returns:
            The created ActivityLog, or None if logging failed
        """
        event_type = type.value if isinstance(type, ActivityType) else type
        try:
            async with get_session(self.engine) as session:
                entry = ActivityLog(
                    type=event_type,
                    workflow_id=workflow_id,
                    execution_id=execution_id,
                    data=data,
                )
                try:
                    ActivityLogRepository(session).add(entry)
                    await session.commit()
                except Exception:
                    with contextlib.suppress(Exception):
                        await session.rollback()
                    raise

            logger.debug(
                "Activity recorded",
                type=event_type,
                workflow_id=str(workflow_id) if workflow_id else None,
                execution_id=str(execution_id) if execution_id else None,
            )
            return entry

        except Exception as e:
            logger.warning(
                "Failed to record activity",
                type=event_type,
                workflow_id=str(workflow_id) if workflow_id else None,
                error=str(e),
            )
            return None

    def emit(
        self,
        type: ActivityType | str,
        workflow_id: UUID | None = None,
        execution_id: UUID | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Schedule ``log_event`` as a tracked background task and return immediately."""
        event_type = type.value if isinstance(type, ActivityType) else type
        request_tracker.spawn(
            self.log_event(type, workflow_id, execution_id, data),
            name=f"activity:{event_type}",
        )
