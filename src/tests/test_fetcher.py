from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest

from lilian_feed.config import FeedSettings
from lilian_feed.errors import HTTPStatusError, MalformedResponseError, NetworkError
from lilian_feed.fallback import FallbackProvider
from lilian_feed.fetcher import PAGE_CATEGORIES, UPCOMING, Fetcher
from lilian_feed.sources.base import ContentSource

LIVE_SECTIONS = {
    "events": [
        {"id": 1, "section": "events", "title": "Feria", "date": "2024-09-15", "published": True},
        {"id": 2, "section": "events", "title": "Borrador", "date": "2024-09-16", "published": False},
    ],
    "talks": [
        {"id": 3, "section": "talks", "title": "Charla", "date": "2024-09-15", "published": True},
    ],
    "social-posts": [
        {"id": 4, "section": "social-posts", "content": "Gracias!", "published": True},
    ],
}


@pytest.fixture
def source():
    src = MagicMock(spec=ContentSource)
    src.get_section.side_effect = lambda section: LIVE_SECTIONS[section]
    src.get_single.side_effect = lambda section: {
        "id": 10 if section == "hero" else 11,
        "section": section,
        "title": section.title(),
        "published": True,
    }
    src.get_upcoming.return_value = [
        {"id": 3, "section": "talks", "date": "2024-09-15", "published": True},
        {"id": 1, "section": "events", "date": "2024-09-15", "published": True},
        {"id": 5, "section": "events", "date": "2024-08-01", "published": True},
    ]
    return src


@pytest.fixture
def fallback():
    return FallbackProvider(
        {
            "hero": [{"id": -1, "title": "Sample hero"}],
            "about": [{"id": -2, "title": "Sample about"}],
            "events": [
                {"id": -10, "title": "Sample event B", "date": "2024-09-22"},
                {"id": -11, "title": "Sample event A", "date": "2024-08-15"},
            ],
            "talks": [{"id": -20, "title": "Sample talk", "date": "2024-10-05"}],
            "social-posts": [{"id": -30, "content": "Sample post"}],
        }
    )


@pytest.fixture
def fetcher(source, fallback):
    return Fetcher(
        FeedSettings(max_upcoming=2),
        source=source,
        fallback=fallback,
        today=lambda: date(2024, 9, 1),
    )


def test_load_page_live(fetcher):
    page = fetcher.load_page()
    assert list(page) == list(PAGE_CATEGORIES)
    assert all(not c.is_fallback for c in page.values())
    assert page["hero"].first.title == "Hero"
    assert [r.id for r in page["events"].records] == [1]
    assert [r.id for r in page[UPCOMING].records] == [1, 3]


def test_events_network_failure_only_affects_events(fetcher, source):
    def get_section(section):
        if section == "events":
            raise NetworkError("connection refused", url="http://backend/api/content/section/events")
        return LIVE_SECTIONS[section]

    source.get_section.side_effect = get_section
    page = fetcher.load_page()

    assert page["events"].is_fallback
    assert "connection refused" in page["events"].error
    assert [r.id for r in page["events"].records] == [-10, -11]
    for category in ("hero", "about", "talks", "social-posts", UPCOMING):
        assert not page[category].is_fallback, category
    assert [r.id for r in page["talks"].records] == [3]


@pytest.mark.parametrize(
    "error",
    [HTTPStatusError(503, url="u"), MalformedResponseError("html", url="u"), RuntimeError("boom")],
)
def test_any_failure_in_a_category_falls_back(fetcher, source, error):
    source.get_single.side_effect = error
    content = fetcher.load_category("hero")
    assert content.is_fallback
    assert [r.id for r in content.records] == [-1]


def test_empty_upcoming_uses_combined_sample_capped(fetcher, source):
    source.get_upcoming.return_value = []
    content = fetcher.load_category(UPCOMING)
    assert content.is_fallback
    assert content.error == "no content available"
    assert [r.id for r in content.records] == [-11, -10]


def test_upcoming_with_only_past_records_falls_back(fetcher, source):
    source.get_upcoming.return_value = [
        {"id": 5, "section": "events", "date": "2024-08-01", "published": True}
    ]
    assert fetcher.load_category(UPCOMING).is_fallback


def test_unpublished_single_falls_back(fetcher, source):
    source.get_single.side_effect = lambda section: {"id": 10, "section": section, "published": False}
    content = fetcher.load_category("about")
    assert content.is_fallback
    assert content.first.id == -2


def test_missing_single_falls_back(fetcher, source):
    source.get_single.side_effect = lambda section: None
    assert fetcher.load_category("hero").is_fallback


def test_live_and_fallback_records_are_never_mixed(fetcher, source):
    source.get_section.side_effect = lambda section: [
        {"id": 1, "section": section, "published": False}
    ]
    page = fetcher.load_page(("events", "talks", "social-posts"))
    for content in page.values():
        assert len({r.is_fallback for r in content.records}) == 1


def test_calendar_from_live_sections(fetcher):
    calendar = fetcher.load_calendar()
    assert not calendar.is_fallback
    assert {k: [r.id for r in v] for k, v in calendar.index.items()} == {"2024-09-15": [1, 3]}


def test_calendar_falls_back_when_a_section_failed(fetcher, source):
    def get_section(section):
        if section == "talks":
            raise NetworkError("down")
        return LIVE_SECTIONS[section]

    source.get_section.side_effect = get_section
    calendar = fetcher.load_calendar()
    assert calendar.is_fallback
    assert "talks" in calendar.error
    assert all(r.is_fallback for day in calendar.index.values() for r in day)
    assert sorted(calendar.index) == ["2024-08-15", "2024-09-22", "2024-10-05"]


def test_get_image_skips_fallback_and_imageless_records(fetcher, source, fallback):
    source.get_image.return_value = b"img"
    assert fetcher.get_image(fallback.records("events")[0]) is None
    page = fetcher.load_page(("events",))
    assert fetcher.get_image(page["events"].records[0]) is None
    source.get_image.assert_not_called()


def test_load_published_filters_unpublished(fetcher, source):
    source.get_published.return_value = LIVE_SECTIONS["events"]
    content = fetcher.load_published()
    assert [r.id for r in content.records] == [1]
    source.get_published.side_effect = NetworkError("down")
    content = fetcher.load_published()
    assert content.records == []
    assert content.error == "down"


def test_upcoming_excludes_unknown_and_singleton_sections(fetcher, source):
    source.get_upcoming.return_value = [
        {"id": 1, "section": "newsletter", "date": "2024-09-10", "published": True},
        {"id": 2, "section": "hero", "date": "2024-09-10", "published": True},
        {"id": 3, "section": "events", "date": "2024-09-10", "published": True},
    ]
    content = fetcher.load_category(UPCOMING)
    assert not content.is_fallback
    assert [(r.id, r.section) for r in content.records] == [(3, "events")]
