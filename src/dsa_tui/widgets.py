from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import ListItem, Static
from textual.reactive import reactive
from rich.text import Text

from .datamodels import Question


STATUS_STYLES = {
    "solved": "green",
    "pending": "yellow",
    "in progress": "blue",
}


def status_text(status: str) -> Text:
    return Text(status, style=f"bold {STATUS_STYLES.get(status.strip().lower(), 'white')}")


# --- UI Widgets ---
class QuestionItem(ListItem):
    def __init__(self, question: Question):
        super().__init__()
        self.question = question

    def compose(self) -> ComposeResult:
        with Horizontal(classes="question-container"):
            yield Static("*" if self.question.pinned else " ", classes="question-pin")
            yield Static(status_text(self.question.status), classes="question-status")
            yield Static(self.question.name, classes="question-name")
            yield Static(self.question.topic, classes="question-topic")
            yield Static(self.question.platform, classes="question-platform")


class StatusBar(Static):
    counts = reactive("")
    loading_status = reactive("")
    keybinding_hint = reactive("")

    def on_mount(self) -> None:
        self.update_display()

    def set_keybindings(self, hint: str) -> None:
        """Set the keybinding hint text."""
        self.keybinding_hint = hint

    def update_display(self) -> None:
        """Update the status bar display."""
        status_items = []
        if self.counts:
            status_items.append(self.counts)
        if self.loading_status:
            status_items.append(self.loading_status)

        if self.keybinding_hint:
            status_items.append(self.keybinding_hint)

        self.update(" | ".join(status_items))

    def set_counts(self, stats: dict) -> None:
        self.counts = (
            f"Total: {stats['total']}  Solved: {stats['solved']}  Pending: {stats['pending']}"
        )

    def watch_counts(self, counts: str) -> None:
        self.update_display()

    def watch_loading_status(self, loading_status: str) -> None:
        self.update_display()

    def watch_keybinding_hint(self, keybinding_hint: str) -> None:
        self.update_display()


class ErrorMessage(Static):
    def __init__(self, message: str):
        super().__init__(Text(message, style="bold red"))
