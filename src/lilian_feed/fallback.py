from __future__ import annotations

import importlib.resources
import json
import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import CALENDAR_SECTIONS
from .datamodels import ContentRecord
from .dates import resolve_date
from .errors import FetchError
from .normalizer import normalize_records

logger = logging.getLogger("lilian")

FALLBACK_RESOURCE = "fallback.json"


class FallbackProvider:
    """
    Static placeholder content shown when live content cannot be.

    The dataset maps a section tag to a list of raw, backend-shaped records.
    Their ids must be negative so they can never collide with an id the
    backend assigns.
    """

    def __init__(self, dataset: Mapping[str, Sequence[Mapping[str, Any]]]):
        self._records: Dict[str, List[ContentRecord]] = {}
        for section, items in dataset.items():
            raw_items = []
            for item in items:
                record_id = item.get("id")
                if not isinstance(record_id, int) or isinstance(record_id, bool) or record_id >= 0:
                    raise ValueError(
                        f"Fallback record ids must be negative integers, got {record_id!r} in {section!r}"
                    )
                raw_items.append({**item, "section": item.get("section", section), "published": True})
            self._records[section] = normalize_records(raw_items, is_fallback=True)

    @classmethod
    def bundled(cls) -> "FallbackProvider":
        """Load the placeholder dataset shipped with the package."""
        resource = importlib.resources.files("lilian_feed.data").joinpath(FALLBACK_RESOURCE)
        with resource.open("r", encoding="utf-8") as f:
            return cls(json.load(f))

    @property
    def sections(self) -> List[str]:
        return list(self._records)

    def records(self, section: str) -> List[ContentRecord]:
        return list(self._records.get(section, []))

    def single(self, section: str) -> Optional[ContentRecord]:
        records = self._records.get(section)
        return records[0] if records else None

    def upcoming(
        self,
        max_length: int,
        sections: Sequence[str] = CALENDAR_SECTIONS,
    ) -> List[ContentRecord]:
        """
        The combined sample for ``sections``, soonest first, capped.

        No date cutoff is applied: the sample is static and would otherwise
        age out of the feed.
        """
        combined = [r for section in sections for r in self._records.get(section, [])]
        combined.sort(key=lambda r: (resolve_date(r) or date.max, r.id))
        return combined[:max_length]


def should_fallback(error: Optional[BaseException], eligible_count: int) -> bool:
    """True when a category has to show placeholder content instead of live data."""
    if error is not None:
        return True
    return eligible_count == 0


def describe_failure(error: Optional[BaseException]) -> str:
    if error is None:
        return "no content available"
    if isinstance(error, FetchError):
        return str(error)
    return f"{type(error).__name__}: {error}"
