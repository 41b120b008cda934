from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from lilian_feed.normalizer import normalize_record, normalize_records


def test_full_record_is_normalized():
    record = normalize_record(
        {
            "id": 7,
            "section": "events",
            "title": "Cena Anual",
            "content": "Una noche especial",
            "subtitle": "",
            "buttonText1": "Inscríbete",
            "buttonUrl1": "https://example.org/cena",
            "imageData": "aGVsbG8=",
            "imageType": "image/png",
            "date": "2024-09-22",
            "published": True,
            "createdAt": "2024-08-01T10:00:00Z",
            "updatedAt": "2024-08-02T11:30:00",
        }
    )
    assert record is not None
    assert record.id == 7
    assert record.section == "events"
    assert record.subtitle == ""
    assert record.call_to_action.text == "Inscríbete"
    assert record.call_to_action.is_external
    assert record.secondary_call_to_action is None
    assert record.image_present
    assert record.image_type == "image/png"
    assert record.explicit_date == "2024-09-22"
    assert record.published
    assert record.created_at == datetime(2024, 8, 1, 10, 0, tzinfo=timezone.utc)
    assert record.updated_at == datetime(2024, 8, 2, 11, 30, tzinfo=timezone.utc)
    assert not record.is_fallback


def test_missing_optional_fields_are_absent():
    record = normalize_record({"id": 1, "section": "talks"})
    assert record.title is None
    assert record.content is None
    assert record.subtitle is None
    assert record.call_to_action is None
    assert record.image_present is False
    assert record.explicit_date is None
    assert record.created_at is None


def test_published_defaults_to_false():
    assert normalize_record({"id": 1, "section": "talks"}).published is False
    assert normalize_record({"id": 1, "section": "talks", "published": None}).published is False
    assert normalize_record({"id": 1, "section": "talks", "published": "true"}).published is True


def test_call_to_action_needs_both_parts():
    half = normalize_record({"id": 1, "section": "hero", "buttonText1": "Dona", "buttonUrl1": ""})
    assert half.call_to_action is None
    only_url = normalize_record({"id": 1, "section": "hero", "buttonUrl1": "/donate"})
    assert only_url.call_to_action is None


@pytest.mark.parametrize(
    "raw",
    [
        {"section": "events"},
        {"id": None, "section": "events"},
        {"id": "abc", "section": "events"},
        {"id": True, "section": "events"},
        {"id": 1.5, "section": "events"},
        {"id": 1},
        {"id": 1, "section": ""},
        {"id": 1, "section": "   "},
        {"id": 1, "section": 42},
        "not a mapping",
        None,
    ],
)
def test_invalid_records_are_rejected(raw):
    assert normalize_record(raw) is None


def test_numeric_ids_are_coerced():
    assert normalize_record({"id": "12", "section": "events"}).id == 12
    assert normalize_record({"id": 12.0, "section": "events"}).id == 12


def test_unknown_section_is_kept_opaque():
    record = normalize_record({"id": 3, "section": "newsletter"})
    assert record.section == "newsletter"


def test_batch_drops_invalid_and_duplicate_records(caplog):
    caplog.set_level(logging.WARNING, logger="lilian")
    records = normalize_records(
        [
            {"id": 1, "section": "events", "title": "first"},
            {"section": "events"},
            {"id": 1, "section": "events", "title": "again"},
            {"id": 2, "section": "talks"},
        ]
    )
    assert [r.id for r in records] == [1, 2]
    assert records[0].title == "first"
    assert "Dropping invalid content record" in caplog.text
    assert "Dropping duplicate content record id 1" in caplog.text
