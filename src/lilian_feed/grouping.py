from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Sequence, Union

from .config import CALENDAR_SECTIONS
from .datamodels import CalendarIndex, ContentRecord
from .dates import resolve_date_key, to_date_key

logger = logging.getLogger("lilian")


def group_by_date(
    records: Iterable[ContentRecord],
    sections: Sequence[str] = CALENDAR_SECTIONS,
) -> CalendarIndex:
    """
    Build a fresh calendar index from ``records`` in a single pass.

    Only published records from ``sections`` are indexed. Within a day the
    records keep the order they were received in.
    """
    eligible = set(sections)
    index: CalendarIndex = {}
    for record in records:
        if not record.published or record.section not in eligible:
            continue
        key = resolve_date_key(record)
        if key is None:
            logger.warning(
                "Skipping %s record %d: no resolvable date", record.section, record.id
            )
            continue
        index.setdefault(key, []).append(record)
    return index


def events_on(index: CalendarIndex, day: Union[date, str]) -> List[ContentRecord]:
    key = day if isinstance(day, str) else to_date_key(day)
    return list(index.get(key, []))


def days_with_events(index: CalendarIndex) -> List[str]:
    return sorted(key for key, records in index.items() if records)
