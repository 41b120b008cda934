from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import Callable, List, Optional, Sequence

from .config import LIST_SECTIONS, SINGLE_SECTIONS, UPCOMING_SECTIONS, FeedSettings
from .datamodels import (
    FALLBACK,
    LIVE,
    CalendarContent,
    ContentRecord,
    PageContent,
    SectionContent,
)
from .dates import utc_today
from .errors import FetchError
from .fallback import FallbackProvider, describe_failure, should_fallback
from .grouping import group_by_date
from .normalizer import normalize_record, normalize_records
from .sources.api import ApiSource
from .sources.base import ContentSource
from .upcoming import select_upcoming

logger = logging.getLogger("lilian")

UPCOMING = "upcoming"
PAGE_CATEGORIES = SINGLE_SECTIONS + LIST_SECTIONS + (UPCOMING,)


class Fetcher:
    """
    Loads every category of the public page and aggregates it.

    Each category is fetched independently and fails independently: a
    category whose fetch fails, or that ends up with nothing to show, gets
    the fallback content for that category only.
    """

    def __init__(
        self,
        settings: FeedSettings,
        source: Optional[ContentSource] = None,
        fallback: Optional[FallbackProvider] = None,
        today: Callable[[], date] = utc_today,
    ):
        self.settings = settings
        self.source = source or ApiSource(settings)
        self.fallback = fallback or FallbackProvider.bundled()
        self.today = today

    def load_category(self, category: str) -> SectionContent:
        try:
            records = self._load_live(category)
            error = None
        except FetchError as e:
            logger.error("Failed to fetch %s: %s", category, e)
            records, error = [], e
        except Exception as e:
            logger.exception("Unexpected error loading %s", category)
            records, error = [], e

        if should_fallback(error, len(records)):
            reason = describe_failure(error)
            logger.warning("Using fallback content for %s (%s)", category, reason)
            return SectionContent(
                section=category,
                records=self._fallback_records(category),
                source=FALLBACK,
                error=reason,
            )
        return SectionContent(section=category, records=records, source=LIVE)

    def load_page(self, categories: Sequence[str] = PAGE_CATEGORIES) -> PageContent:
        page: PageContent = {}
        with ThreadPoolExecutor(max_workers=max(1, len(categories))) as executor:
            future_to_category = {
                executor.submit(self.load_category, category): category
                for category in categories
            }
            for future in as_completed(future_to_category):
                category = future_to_category[future]
                try:
                    page[category] = future.result()
                except Exception as e:
                    # load_category already degrades to fallback; this guards the pool itself
                    logger.error("Loader for %s crashed: %s", category, e)
                    page[category] = SectionContent(
                        section=category,
                        records=self._fallback_records(category),
                        source=FALLBACK,
                        error=describe_failure(e),
                    )
        # keep the requested order regardless of completion order
        return {category: page[category] for category in categories}

    def build_calendar(self, page: PageContent) -> CalendarContent:
        """
        Group the calendar sections of an already loaded page by date.

        The index is built entirely from live records or entirely from the
        fallback sample, never from a mix of both.
        """
        sections = self.settings.calendar_sections
        contents = [page[s] for s in sections if s in page]
        failed = [c for c in contents if c.is_fallback]
        if not failed and contents:
            live = [r for c in contents for r in c.records]
            index = group_by_date(live, sections)
            if index:
                return CalendarContent(index=index, source=LIVE)
            reason = "no dated records"
        else:
            reason = "; ".join(f"{c.section}: {c.error}" for c in failed) or "no sections loaded"

        logger.warning("Using fallback calendar (%s)", reason)
        sample = [r for s in sections for r in self.fallback.records(s)]
        return CalendarContent(index=group_by_date(sample, sections), source=FALLBACK, error=reason)

    def load_calendar(self) -> CalendarContent:
        return self.build_calendar(self.load_page(self.settings.calendar_sections))

    def load_published(self) -> SectionContent:
        """Every published record, live only; an empty result carries the error."""
        try:
            raw = self.source.get_published()
        except FetchError as e:
            logger.error("Failed to fetch published content: %s", e)
            return SectionContent(section="published", source=LIVE, error=describe_failure(e))
        records = [r for r in normalize_records(raw) if r.published]
        return SectionContent(section="published", records=records, source=LIVE)

    def get_image(self, record: ContentRecord) -> Optional[bytes]:
        if record.is_fallback or not record.image_present:
            return None
        return self.source.get_image(record.id)

    def _load_live(self, category: str) -> List[ContentRecord]:
        if category == UPCOMING:
            records = normalize_records(self.source.get_upcoming())
            return select_upcoming(
                records,
                today=self.today(),
                max_length=self.settings.max_upcoming,
                lookback_days=self.settings.lookback_days,
                sections=UPCOMING_SECTIONS,
            )
        if category in SINGLE_SECTIONS:
            raw = self.source.get_single(category)
            record = normalize_record(raw) if raw is not None else None
            if raw is not None and record is None:
                logger.warning("Dropping invalid %s record: %r", category, raw)
            return [record] if record is not None and record.published else []
        records = normalize_records(self.source.get_section(category))
        return [r for r in records if r.published and r.section == category]

    def _fallback_records(self, category: str) -> List[ContentRecord]:
        if category == UPCOMING:
            return self.fallback.upcoming(
                self.settings.max_upcoming, self.settings.calendar_sections
            )
        if category in SINGLE_SECTIONS:
            record = self.fallback.single(category)
            return [record] if record is not None else []
        return self.fallback.records(category)
