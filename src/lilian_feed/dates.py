"""
Date key resolution.

Every date that ends up as a calendar key goes through this module, so two
renders of the same data group identically no matter what the local timezone
of the process is. Naive timestamps (the backend serialises ``LocalDateTime``
without an offset) are taken to be UTC.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from typing import Optional

from .datamodels import ContentRecord

logger = logging.getLogger("lilian")

DATE_KEY_FORMAT = "%Y-%m-%d"
_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime, or None."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # Java emits up to nanosecond precision
    text = _FRACTION.sub(r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_explicit_date(value: Optional[str]) -> Optional[date]:
    """Parse an event's ``date`` field: ``yyyy-MM-dd`` or a full timestamp."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if _DATE_ONLY.match(text):
        try:
            return datetime.strptime(text, DATE_KEY_FORMAT).date()
        except ValueError:
            return None
    stamp = parse_timestamp(text)
    return stamp.date() if stamp else None


def resolve_date(record: ContentRecord) -> Optional[date]:
    explicit = parse_explicit_date(record.explicit_date)
    if explicit is not None:
        return explicit
    if record.explicit_date:
        logger.debug(
            "Record %s has unparseable date %r; using createdAt",
            record.id,
            record.explicit_date,
        )
    if record.created_at is not None:
        created = record.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return created.astimezone(timezone.utc).date()
    return None


def resolve_date_key(record: ContentRecord) -> Optional[str]:
    """Return the ``yyyy-MM-dd`` calendar key for a record, or None."""
    resolved = resolve_date(record)
    return resolved.strftime(DATE_KEY_FORMAT) if resolved else None


def to_date_key(day: date) -> str:
    return day.strftime(DATE_KEY_FORMAT)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
