from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from .datamodels import CallToAction, ContentRecord
from .dates import parse_timestamp

logger = logging.getLogger("lilian")

_TRUE_STRINGS = {"true", "1", "yes"}


def normalize_record(raw: Any, is_fallback: bool = False) -> Optional[ContentRecord]:
    """
    Coerce one backend payload into a ContentRecord.

    Returns None when the payload cannot identify itself (no usable ``id`` or
    ``section``). Missing optional text stays None rather than becoming "",
    and a missing ``published`` flag means unpublished.
    """
    if not isinstance(raw, Mapping):
        return None

    record_id = _coerce_id(raw.get("id"))
    if record_id is None:
        return None

    section = raw.get("section")
    if not isinstance(section, str) or not section.strip():
        return None

    return ContentRecord(
        id=record_id,
        section=section.strip(),
        title=_optional_text(raw.get("title")),
        content=_optional_text(raw.get("content")),
        subtitle=_optional_text(raw.get("subtitle")),
        call_to_action=_call_to_action(raw.get("buttonText1"), raw.get("buttonUrl1")),
        secondary_call_to_action=_call_to_action(
            raw.get("buttonText2"), raw.get("buttonUrl2")
        ),
        image_present=_image_present(raw),
        image_type=_optional_text(raw.get("imageType")),
        subtype=_optional_text(raw.get("subtype")),
        link=_optional_text(raw.get("link")),
        explicit_date=_optional_text(raw.get("date")),
        published=_coerce_bool(raw.get("published")),
        created_at=parse_timestamp(raw.get("createdAt")),
        updated_at=parse_timestamp(raw.get("updatedAt")),
        is_fallback=is_fallback,
    )


def normalize_records(items: Iterable[Any], is_fallback: bool = False) -> List[ContentRecord]:
    """Normalize a batch, dropping invalid payloads and repeated ids."""
    records: List[ContentRecord] = []
    seen_ids = set()
    for position, raw in enumerate(items):
        record = normalize_record(raw, is_fallback=is_fallback)
        if record is None:
            logger.warning("Dropping invalid content record at position %d: %r", position, raw)
            continue
        if record.id in seen_ids:
            logger.warning("Dropping duplicate content record id %d", record.id)
            continue
        seen_ids.add(record.id)
        records.append(record)
    return records


def _coerce_id(value: Any) -> Optional[int]:
    # bool is an int subclass; `"id": true` is not an id
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def _optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _call_to_action(text: Any, url: Any) -> Optional[CallToAction]:
    text = _optional_text(text)
    url = _optional_text(url)
    if text and text.strip() and url and url.strip():
        return CallToAction(text=text.strip(), url=url.strip())
    return None


def _image_present(raw: Mapping[str, Any]) -> bool:
    if raw.get("imagePresent") is True or raw.get("hasImage") is True:
        return True
    data = raw.get("imageData")
    return bool(data) and isinstance(data, (str, list))
