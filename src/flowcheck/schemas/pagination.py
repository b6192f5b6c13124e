"""Keyset pagination: response envelope and cursor codec."""

import base64
import binascii
import json
from datetime import datetime
from typing import Generic, NamedTuple, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


class PaginatedResponse(BaseModel, Generic[T]):
    """A page of results, newest first.

    ``next_cursor`` is opaque; pass it back unchanged to fetch the following page.
    """

    items: list[T]
    next_cursor: str | None = Field(
        default=None,
        description="Cursor for the next page. None on the last page.",
    )
    has_more: bool = Field(
        default=False,
        description="Whether more items follow this page.",
    )


class Cursor(NamedTuple):
    """Position after the last row of a page: its creation time, then its id."""

    created_at: datetime
    id: UUID


def encode_cursor(created_at: datetime, id: UUID) -> str:
    raw = json.dumps({"t": created_at.isoformat(), "id": str(id)}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> Cursor:
    """Decode a cursor produced by :func:`encode_cursor`.

    Raises:
        ValueError: The cursor is malformed.
    """
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()))
        return Cursor(datetime.fromisoformat(data["t"]), UUID(data["id"]))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
        raise ValueError("Invalid cursor") from e
