from __future__ import annotations

from typing import List

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import ListItem, Static
from textual.reactive import reactive
from rich.text import Text

from .datamodels import ContentRecord
from .dates import resolve_date_key


def record_label(record: ContentRecord) -> str:
    """Headline text for a record; social posts usually have no title."""
    if record.title:
        return record.title
    if record.content and record.content.strip():
        first_line = record.content.strip().splitlines()[0]
        return first_line[:80] + ("…" if len(first_line) > 80 else "")
    return f"({record.section} #{record.id})"


# --- UI Widgets ---
class ViewListItem(ListItem):
    def __init__(self, view_id: str, label: str):
        super().__init__()
        self.view_id = view_id
        self.label = label

    def compose(self) -> ComposeResult:
        yield Static(self.label)


class RecordItem(ListItem):
    def __init__(self, record: ContentRecord):
        super().__init__()
        self.record = record

    def compose(self) -> ComposeResult:
        with Horizontal(classes="record-container"):
            yield Static(resolve_date_key(self.record) or "", classes="record-date")
            yield Static(self.record.section, classes="record-section")
            yield Static(record_label(self.record), classes="record-title")


class DayItem(ListItem):
    def __init__(self, date_key: str, records: List[ContentRecord]):
        super().__init__()
        self.date_key = date_key
        self.records = records

    def compose(self) -> ComposeResult:
        count = len(self.records)
        with Horizontal(classes="record-container"):
            yield Static(self.date_key, classes="record-date")
            yield Static(f"{count} event{'s' if count != 1 else ''}", classes="record-section")
            yield Static(
                ", ".join(record_label(r) for r in self.records), classes="record-title"
            )


class StatusBar(Static):
    loading_status = reactive("")
    keybinding_hint = reactive("")

    def on_mount(self) -> None:
        self.update_display()

    def set_keybindings(self, hint: str) -> None:
        """Set the keybinding hint text."""
        self.keybinding_hint = hint

    def update_display(self) -> None:
        status_items = []
        if self.loading_status:
            status_items.append(self.loading_status)

        if self.keybinding_hint:
            status_items.append(self.keybinding_hint)

        self.update(" | ".join(status_items))

    def watch_loading_status(self, loading_status: str) -> None:
        self.update_display()

    def watch_keybinding_hint(self, keybinding_hint: str) -> None:
        self.update_display()


class ErrorMessage(Static):
    def __init__(self, message: str):
        super().__init__(Text(message, style="bold red"))


class EmptyMessage(Static):
    def __init__(self, message: str = "Nothing to show yet."):
        super().__init__(Text(message, style="italic"))
