from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


def encode_date(value: date | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def decode_date(value: Any) -> date | None:
    """Read a stored date; unreadable values become None instead of a sentinel."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s).date()
        except ValueError:
            try:
                return date.fromisoformat(s[:10])
            except ValueError:
                logger.debug("Dropping unreadable stored date %r", value)
                return None
    logger.debug("Dropping stored date of unexpected type %s", type(value).__name__)
    return None


def decode_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            dt = datetime.now(timezone.utc)
    else:
        dt = datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def drop_none(data: dict[str, Any]) -> dict[str, Any]:
    """Missing values are omitted from documents, never written as null."""
    return {k: v for k, v in data.items() if v is not None}
