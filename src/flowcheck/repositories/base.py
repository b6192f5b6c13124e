"""Base repository with common CRUD operations."""

from typing import Any, cast
from uuid import UUID

from sqlalchemy import and_, or_, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from src.flowcheck.core.exceptions import ValidationError
from src.flowcheck.schemas.pagination import decode_cursor, encode_cursor


class BaseRepository[ModelType: SQLModel]:
    """Base repository providing common database operations.

    Repositories handle data access only. Transaction control (commit)
    should be done in the service layer.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Get a record by its primary key.

        Always refreshes from the database so that status changes committed by
        other sessions (a concurrent cancel, a background run) are visible.
        """
        result = await self.session.execute(
            select(self.model)
            .where(self.model.id == id)  # type: ignore[attr-defined]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        """Add entity to session (no flush/commit)."""
        self.session.add(entity)

    async def delete(self, entity: ModelType) -> None:
        """Mark entity for deletion (no commit)."""
        await self.session.delete(entity)

    async def compare_and_set(
        self,
        id: UUID,
        from_statuses: list[str],
        to_status: str,
        **values: Any,
    ) -> bool:
        """Atomically move a row's status if it is currently one of ``from_statuses``.

        Issues a single ``UPDATE ... WHERE id = :id AND status IN (...)``, so two
        racing callers cannot both succeed.

        Returns:
            True if the row was updated, False if its status did not match.
        """
        stmt = (
            update(self.model)
            .where(
                self.model.id == id,  # type: ignore[attr-defined]
                self.model.status.in_(from_statuses),  # type: ignore[attr-defined]
            )
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (cast(CursorResult[Any], result).rowcount or 0) == 1

    async def paginate(
        self,
        query: Any,  # SelectOfScalar or Select - SQLModel/SQLAlchemy query
        cursor: str | None,
        limit: int,
        cursor_field: Any,
    ) -> tuple[list[ModelType], str | None, bool]:
        """Execute cursor-based pagination on a query.

        Args:
            query: The base SQLAlchemy query to paginate
            cursor: Cursor returned with the previous page
            limit: Maximum number of items to return
            cursor_field: Timestamp column to order by (ties broken by id)

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        id_field = self.model.id  # type: ignore[attr-defined]
        if cursor:
            try:
                position = decode_cursor(cursor)
            except ValueError as e:
                raise ValidationError("Invalid pagination cursor") from e
            # Rows sharing a timestamp are split by id so none is skipped or repeated
            query = query.where(
                or_(
                    cursor_field < position.created_at,
                    and_(cursor_field == position.created_at, id_field < position.id),
                )
            )

        query = query.order_by(cursor_field.desc(), id_field.desc())

        # Fetch limit + 1 to determine if there are more results
        query = query.limit(limit + 1)

        result = await self.session.execute(query)
        items = list(result.scalars().all())

        has_more = len(items) > limit
        if has_more:
            items = items[:limit]

        next_cursor = None
        if has_more and items:
            last = items[-1]
            last_id = last.id  # type: ignore[attr-defined]
            next_cursor = encode_cursor(getattr(last, cursor_field.key), last_id)

        return items, next_cursor, has_more
