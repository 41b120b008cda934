from __future__ import annotations

import asyncio
from types import SimpleNamespace

from textual.worker import WorkerState

from lilian_feed.app import LilianApp
from lilian_feed.config import FeedSettings
from lilian_feed.datamodels import FALLBACK, LIVE, CalendarContent, SectionContent
from lilian_feed.fetcher import PAGE_CATEGORIES
from lilian_feed.normalizer import normalize_records
from lilian_feed.screens import ErrorScreen
from lilian_feed.widgets import EmptyMessage, RecordItem, StatusBar


def _page(hero_source=LIVE, hero_records=None):
    page = {
        category: SectionContent(
            section=category,
            records=normalize_records(
                [{"id": i + 1, "section": category, "title": category, "published": True}]
            ),
        )
        for i, category in enumerate(PAGE_CATEGORIES)
    }
    if hero_records is not None or hero_source != LIVE:
        page["hero"] = SectionContent(
            section="hero",
            records=hero_records if hero_records is not None else [],
            source=hero_source,
            error="connection refused" if hero_source == FALLBACK else None,
        )
    return page


class StubFetcher:
    def __init__(self, page=None, error=None):
        self.page = page
        self.error = error

    def load_page(self):
        if self.error is not None:
            raise self.error
        return self.page

    def build_calendar(self, page):
        return CalendarContent()

    def get_image(self, record):
        return None


def _run(fetcher, check):
    async def scenario():
        app = LilianApp(fetcher=fetcher, settings=FeedSettings())
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.pause()
            check(app)

    asyncio.run(scenario())


def test_live_page_is_shown_after_mount():
    page = _page()

    def check(app):
        assert app.page is page
        assert app.load_error is None
        assert len(app.query(RecordItem)) == 1
        assert app.query_one(StatusBar).loading_status == ""

    _run(StubFetcher(page), check)


def test_fallback_category_sets_status_bar():
    fallback_hero = normalize_records(
        [{"id": -1, "section": "hero", "title": "Sample", "published": True}], is_fallback=True
    )
    page = _page(hero_source=FALLBACK, hero_records=fallback_hero)

    def check(app):
        status = app.query_one(StatusBar).loading_status
        assert status.startswith("Showing sample hero")
        assert "connection refused" in status

    _run(StubFetcher(page), check)


def test_empty_category_shows_empty_message():
    page = _page(hero_records=[])

    def check(app):
        assert len(app.query(EmptyMessage)) == 1
        assert len(app.query(RecordItem)) == 0

    _run(StubFetcher(page), check)


def test_stale_generation_result_is_discarded():
    page = _page()
    newer = _page()

    def check(app):
        assert app.page is page
        app.generation += 1
        stale = SimpleNamespace(
            worker=SimpleNamespace(
                name="page_loader", result=(app.generation - 1, newer, CalendarContent())
            ),
            state=WorkerState.SUCCESS,
        )
        app.on_worker_state_changed(stale)
        assert app.page is page

        current = SimpleNamespace(
            worker=SimpleNamespace(
                name="page_loader", result=(app.generation, newer, CalendarContent())
            ),
            state=WorkerState.SUCCESS,
        )
        app.on_worker_state_changed(current)
        assert app.page is newer

    _run(StubFetcher(page), check)


def test_loader_crash_pushes_error_screen():
    def check(app):
        assert app.page is None
        assert "backend exploded" in app.load_error
        assert isinstance(app.screen, ErrorScreen)

    _run(StubFetcher(error=RuntimeError("backend exploded")), check)
