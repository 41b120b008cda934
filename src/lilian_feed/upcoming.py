from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from .datamodels import ContentRecord
from .dates import resolve_date

logger = logging.getLogger("lilian")


def select_upcoming(
    records: Iterable[ContentRecord],
    today: date,
    max_length: int,
    lookback_days: int = 0,
    sections: Optional[Sequence[str]] = None,
) -> List[ContentRecord]:
    """
    Return published records dated on or after the cutoff, soonest first.

    The cutoff is ``today - lookback_days`` and is compared by date only, so an
    event later today is always included. Ties on date are broken by id, a
    repeated id keeps its first occurrence, and the result is capped at
    ``max_length``.
    """
    if max_length < 0:
        raise ValueError(f"max_length must be >= 0, got {max_length}")
    if lookback_days < 0:
        raise ValueError(f"lookback_days must be >= 0, got {lookback_days}")

    cutoff = today - timedelta(days=lookback_days)
    allowed = set(sections) if sections is not None else None

    candidates = []
    seen_ids = set()
    for record in records:
        if not record.published or record.id in seen_ids:
            continue
        if allowed is not None and record.section not in allowed:
            continue
        resolved = resolve_date(record)
        if resolved is None:
            logger.warning("Skipping record %d from upcoming feed: no resolvable date", record.id)
            continue
        if resolved < cutoff:
            continue
        seen_ids.add(record.id)
        candidates.append((resolved, record.id, record))

    candidates.sort(key=lambda item: (item[0], item[1]))
    return [record for _, _, record in candidates[:max_length]]
