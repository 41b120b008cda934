from __future__ import annotations

import logging
from typing import Any, List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.worker import Worker, WorkerState
from textual.widgets import (
    Header,
    Input,
    ListView,
    LoadingIndicator,
    Rule,
    Static,
)

from .config import UI_DEFAULTS, FeedSettings
from .datamodels import CalendarContent, ContentRecord, PageContent
from .fetcher import UPCOMING, Fetcher
from .grouping import days_with_events, events_on
from .screens import DayScreen, ErrorScreen, RecordViewScreen
from .widgets import (
    DayItem,
    EmptyMessage,
    ErrorMessage,
    RecordItem,
    StatusBar,
    ViewListItem,
    record_label,
)

logger = logging.getLogger("lilian")

CALENDAR = "calendar"

VIEWS = [
    ("hero", "Hero"),
    ("about", "About"),
    ("events", "Events"),
    ("talks", "Talks"),
    ("social-posts", "Social"),
    (UPCOMING, "Upcoming"),
    (CALENDAR, "Calendar"),
]


class LilianApp(App):
    TITLE = "Programa Lilian"
    SUB_TITLE = "Events, talks and news"

    CSS_PATH = "app.tcss"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("left", "nav_left", "Navigate Left"),
        Binding("right", "nav_right", "Navigate Right"),
        Binding("ctrl+l", "toggle_left_pane", "Toggle Views"),
        Binding("/", "focus_filter", "Search"),
    ]

    def __init__(
        self,
        fetcher: Fetcher,
        settings: FeedSettings,
        theme: Optional[str] = None,
        config: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.fetcher = fetcher
        self.settings = settings
        self.config = config or {}
        self._theme_name = theme
        self.current_view: str = VIEWS[0][0]
        self.page: Optional[PageContent] = None
        self.calendar: Optional[CalendarContent] = None
        self.load_error: Optional[str] = None
        # bumped on every load; results from an older generation are discarded
        self.generation = 0

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            with Vertical(id="left"):
                yield Static("Views", classes="pane-title")
                yield ListView(
                    *[ViewListItem(view_id, label) for view_id, label in VIEWS],
                    id="views-list",
                )
            yield Rule(orientation="vertical")
            with Vertical(id="right"):
                yield Static("", id="view-title", classes="pane-title")
                yield Input(placeholder="Filter records...", id="record-filter")
                yield ListView(id="records-list")
        yield StatusBar()

    def on_mount(self) -> None:
        if self._theme_name:
            try:
                self.theme = self._theme_name
            except Exception as e:
                logger.warning("Unknown theme %r: %s", self._theme_name, e)

        self.query_one("#record-filter").display = False
        self.query_one("#records-list", ListView).cursor_type = "row"
        keybindings_text = self.config.get("ui", {}).get(
            "statusbar_keybindings", UI_DEFAULTS["statusbar_keybindings"]
        )
        self.query_one(StatusBar).set_keybindings(keybindings_text)
        self.query_one("#views-list").focus()
        self.load_page()

    # --- loading ---
    def load_page(self) -> None:
        self.generation += 1
        generation = self.generation
        self.page = None
        self.calendar = None
        self.load_error = None
        self.query_one(StatusBar).loading_status = "Loading content..."
        self._show_loading()

        def _load():
            page = self.fetcher.load_page()
            return generation, page, self.fetcher.build_calendar(page)

        self.run_worker(
            _load, name="page_loader", thread=True, exclusive=True, exit_on_error=False
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if getattr(event.worker, "name", None) != "page_loader":
            return
        if event.state is WorkerState.SUCCESS:
            generation, page, calendar = event.worker.result
            if generation != self.generation:
                logger.debug("Discarding stale page load (generation %d)", generation)
                return
            self.page = page
            self.calendar = calendar
            self.show_view(self.current_view)
        elif event.state is WorkerState.ERROR:
            error = getattr(event.worker, "error", None)
            logger.error("Page loader failed: %s", error)
            self.load_error = f"Failed to load content: {error}"
            self.query_one(StatusBar).loading_status = "Error loading content."
            self.show_view(self.current_view)
            self.push_screen(
                ErrorScreen(
                    "Could not load content",
                    f"{error}\n\nCheck `api_base_url` in `~/.config/lilian/config.json`.",
                )
            )

    # --- rendering ---
    def _show_loading(self) -> None:
        records_list = self.query_one("#records-list", ListView)
        records_list.clear()
        records_list.mount(LoadingIndicator())

    def _records_for(self, view_id: str) -> List[ContentRecord]:
        if not self.page or view_id not in self.page:
            return []
        return self.page[view_id].records

    def show_view(self, view_id: str, query: str = "") -> None:
        self.current_view = view_id
        title = dict(VIEWS).get(view_id, view_id)
        self.query_one("#view-title", Static).update(title)
        records_list = self.query_one("#records-list", ListView)
        records_list.clear()
        status = self.query_one(StatusBar)

        if self.load_error:
            records_list.mount(ErrorMessage(self.load_error))
            return
        if self.page is None:
            records_list.mount(LoadingIndicator())
            return

        if view_id == CALENDAR:
            self._show_calendar(records_list, query)
            return

        content = self.page.get(view_id)
        if content is not None and content.is_fallback:
            status.loading_status = f"Showing sample {title.lower()} ({content.error})"
        else:
            status.loading_status = ""

        records = filter_records(self._records_for(view_id), query)
        if not records:
            records_list.mount(EmptyMessage())
            return
        for record in records:
            records_list.append(RecordItem(record))

    def _show_calendar(self, records_list: ListView, query: str) -> None:
        status = self.query_one(StatusBar)
        calendar = self.calendar or CalendarContent()
        if calendar.is_fallback:
            status.loading_status = f"Showing sample calendar ({calendar.error})"
        else:
            status.loading_status = ""
        days = days_with_events(calendar.index)
        shown = 0
        for day in days:
            records = filter_records(events_on(calendar.index, day), query)
            if records:
                records_list.append(DayItem(day, records))
                shown += 1
        if not shown:
            records_list.mount(EmptyMessage("No scheduled events."))

    # --- events ---
    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id == "views-list":
            if isinstance(event.item, ViewListItem):
                self.query_one("#record-filter", Input).value = ""
                self.show_view(event.item.view_id)
        elif event.list_view.id == "records-list":
            if isinstance(event.item, RecordItem):
                self.push_screen(RecordViewScreen(event.item.record, self.fetcher))
            elif isinstance(event.item, DayItem):
                self.push_screen(DayScreen(event.item.date_key, event.item.records, self.fetcher))

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "record-filter":
            self.show_view(self.current_view, event.value.strip().lower())

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "record-filter" and not event.input.value:
            event.input.display = False

    def action_refresh(self) -> None:
        self.load_page()

    def action_nav_left(self) -> None:
        if self.query_one("#records-list").has_focus:
            self.query_one("#views-list").focus()

    def action_nav_right(self) -> None:
        records_list = self.query_one("#records-list", ListView)
        if records_list.has_focus:
            item = records_list.highlighted_child
            if isinstance(item, RecordItem):
                self.push_screen(RecordViewScreen(item.record, self.fetcher))
            elif isinstance(item, DayItem):
                self.push_screen(DayScreen(item.date_key, item.records, self.fetcher))
        elif self.query_one("#views-list").has_focus:
            records_list.focus()

    def action_toggle_left_pane(self) -> None:
        left_pane = self.query_one("#left")
        left_pane.display = not left_pane.display

    def action_focus_filter(self) -> None:
        filter_input = self.query_one("#record-filter")
        filter_input.display = True
        filter_input.focus()


def filter_records(records: List[ContentRecord], query: str) -> List[ContentRecord]:
    """Case-insensitive match on title, content and section."""
    query = query.strip().lower()
    if not query:
        return list(records)
    return [
        r
        for r in records
        if query in record_label(r).lower()
        or query in (r.content or "").lower()
        or query in r.section.lower()
    ]
