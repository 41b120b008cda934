from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

LIVE = "live"
FALLBACK = "fallback"


# --- Data models ---
@dataclass(frozen=True)
class CallToAction:
    text: str
    url: str

    @property
    def is_external(self) -> bool:
        return self.url.startswith("http://") or self.url.startswith("https://")


@dataclass(frozen=True)
class ContentRecord:
    id: int
    section: str
    title: Optional[str] = None
    content: Optional[str] = None
    subtitle: Optional[str] = None
    call_to_action: Optional[CallToAction] = None
    secondary_call_to_action: Optional[CallToAction] = None
    image_present: bool = False
    image_type: Optional[str] = None
    subtype: Optional[str] = None
    link: Optional[str] = None
    explicit_date: Optional[str] = None
    published: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_fallback: bool = False


# date key (yyyy-MM-dd) -> records in the order they were received
CalendarIndex = Dict[str, List[ContentRecord]]


@dataclass
class SectionContent:
    """What one category of the page ended up showing, and why."""

    section: str
    records: List[ContentRecord] = field(default_factory=list)
    source: str = LIVE
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == FALLBACK

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def first(self) -> Optional[ContentRecord]:
        return self.records[0] if self.records else None


PageContent = Dict[str, SectionContent]


@dataclass
class CalendarContent:
    index: CalendarIndex = field(default_factory=dict)
    source: str = LIVE
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == FALLBACK


def record_as_dict(record: ContentRecord) -> Dict[str, Any]:
    """A JSON-ready view of a record, timestamps as ISO-8601 strings."""
    data = asdict(record)
    for key in ("created_at", "updated_at"):
        if data[key] is not None:
            data[key] = data[key].isoformat()
    return data
