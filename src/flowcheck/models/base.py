from datetime import UTC, datetime

from sqlalchemy import JSON, Column
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in local runs and tests)
JSON_TYPE = JSON().with_variant(JSONB(), "postgresql")


def utc_now() -> datetime:
    """Return current UTC time as naive datetime (for PostgreSQL TIMESTAMP).

    Database columns use TIMESTAMP WITHOUT TIME ZONE, so we strip tzinfo.
    All times are stored in UTC by convention.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def json_column(nullable: bool = True) -> Column:  # type: ignore[type-arg]
    """Build a fresh JSON column. SQLModel needs one Column instance per field."""
    return Column(JSON_TYPE, nullable=nullable)
