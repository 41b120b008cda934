from __future__ import annotations

import logging
import webbrowser
from typing import List, Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.screen import Screen
from textual.worker import Worker, WorkerState
from textual.widgets import (
    Footer,
    Header,
    Label,
    ListView,
    Markdown,
)

from .datamodels import ContentRecord
from .dates import resolve_date_key
from .fetcher import Fetcher
from .widgets import EmptyMessage, RecordItem, StatusBar, record_label

logger = logging.getLogger("lilian")


def render_record_markdown(record: ContentRecord, image_note: Optional[str] = None) -> str:
    parts = [f"# {record_label(record)}\n"]
    if record.subtitle:
        parts.append(f"*{record.subtitle}*\n")
    meta = [record.section]
    date_key = resolve_date_key(record)
    if date_key:
        meta.append(date_key)
    if record.is_fallback:
        meta.append("sample content")
    parts.append(" · ".join(meta) + "\n")
    if record.content:
        parts.append(record.content.strip() + "\n")
    if image_note:
        parts.append(f"> {image_note}\n")
    for cta in (record.call_to_action, record.secondary_call_to_action):
        if cta is not None:
            parts.append(f"- **{cta.text}**: {cta.url}\n")
    if record.link:
        parts.append(f"- Link: {record.link}\n")
    return "\n".join(parts)


# --- Record screen ---
class RecordViewScreen(Screen):
    BINDINGS = [
        Binding("escape,q,b,left", "app.pop_screen", "Back"),
        Binding("o", "open_in_browser", "Open link"),
        Binding("down", "scroll_down", "Scroll Down"),
        Binding("up", "scroll_up", "Scroll Up"),
    ]

    def __init__(self, record: ContentRecord, fetcher: Fetcher):
        super().__init__()
        self.record = record
        self.fetcher = fetcher

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(
            Markdown(render_record_markdown(self.record), id="record-markdown"),
            id="record-scroll",
        )
        yield StatusBar()

    def on_mount(self) -> None:
        self.title = record_label(self.record)
        self.query_one("#record-scroll").focus()
        self.query_one(StatusBar).set_keybindings(
            "[b cyan]up/down[/] to scroll, [b cyan]o[/] to open link"
        )
        if self.record.image_present and not self.record.is_fallback:
            self.run_worker(
                lambda: self.fetcher.get_image(self.record),
                name="image_loader",
                thread=True,
                exclusive=True,
                exit_on_error=False,
            )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if getattr(event.worker, "name", None) != "image_loader":
            return
        if event.state is WorkerState.SUCCESS:
            data = event.worker.result
            if data:
                kind = self.record.image_type or "image"
                note = f"Image attached ({len(data) / 1024:.1f} KB, {kind})"
            else:
                note = "Image could not be loaded."
            self.query_one("#record-markdown", Markdown).update(
                render_record_markdown(self.record, image_note=note)
            )
        elif event.state is WorkerState.ERROR:
            logger.error("Image loader failed for %s: %s", self.record.id, event.worker.error)

    def action_open_in_browser(self) -> None:
        cta = self.record.call_to_action or self.record.secondary_call_to_action
        if cta is not None and cta.is_external:
            webbrowser.open(cta.url)
        elif self.record.link and self.record.link.startswith(("http://", "https://")):
            webbrowser.open(self.record.link)
        else:
            self.notify("This record has no external link.", severity="warning")

    def action_scroll_down(self) -> None:
        self.query_one("#record-scroll").scroll_down()

    def action_scroll_up(self) -> None:
        self.query_one("#record-scroll").scroll_up()


class DayScreen(Screen):
    BINDINGS = [
        Binding("escape,q,b,left", "app.pop_screen", "Back"),
    ]

    def __init__(self, date_key: str, records: List[ContentRecord], fetcher: Fetcher):
        super().__init__()
        self.date_key = date_key
        self.records = records
        self.fetcher = fetcher

    def compose(self) -> ComposeResult:
        yield Header()
        yield ListView(id="day-list")
        yield Footer()

    def on_mount(self) -> None:
        self.title = f"Events on {self.date_key}"
        view = self.query_one("#day-list", ListView)
        if not self.records:
            view.mount(EmptyMessage("No events scheduled for this day."))
            return
        for record in self.records:
            view.append(RecordItem(record))
        view.focus()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, RecordItem):
            self.app.push_screen(RecordViewScreen(event.item.record, self.fetcher))


class ErrorScreen(Screen):
    BINDINGS = [
        Binding("q", "app.quit", "Quit"),
        Binding("escape", "app.pop_screen", "Back"),
    ]

    def __init__(self, title: str, message: str):
        super().__init__()
        self.title = title
        self.message = message

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label(self.title, classes="error-title")
        yield Markdown(self.message)
        yield Footer()
