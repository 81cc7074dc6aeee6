from __future__ import annotations

import webbrowser
from typing import Any, Callable

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.screen import Screen
from textual.worker import Worker, WorkerState
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    LoadingIndicator,
    Markdown,
    Static,
)

from .config import Config, logger
from .datamodels import Question, Solution
from .extractor import Extractor
from .store import ReconciliationStore
from .widgets import StatusBar


def render_solution(question: Question, solution: Solution) -> str:
    return (
        f"# {question.name}\n\n"
        f"[{solution.question_link}]({solution.question_link})\n\n"
        f"## Description\n\n{solution.description}\n\n"
        f"## Input / Output\n\n{solution.input_output}\n\n"
        f"## Approach\n\n{solution.approach}\n\n"
        f"## Solution\n\n```cpp\n{solution.cpp_solution}\n```\n"
    )


# --- Solution screen ---
class SolutionScreen(Screen):
    BINDINGS = [
        Binding("escape,q,left", "app.pop_screen", "Back"),
        Binding("o", "open_in_browser", "Open in browser"),
        Binding("r", "reload_solution", "Reload"),
        Binding("down", "scroll_down", "Scroll Down"),
        Binding("up", "scroll_up", "Scroll Up"),
    ]

    def __init__(self, question: Question, extractor: Extractor):
        super().__init__()
        self.question = question
        self.extractor = extractor

    def compose(self) -> ComposeResult:
        yield Header()
        yield StatusBar()
        yield LoadingIndicator(id="solution-loading")
        yield VerticalScroll(Markdown("", id="solution-markdown"), id="solution-scroll")

    def on_mount(self) -> None:
        self.title = self.question.name
        self.sub_title = f"{self.question.platform} · {self.question.topic}"
        self.query_one("#solution-scroll").focus()
        self.load_solution()
        self.query_one(StatusBar).set_keybindings(
            "[b $accent]up/down[/] to scroll, [b $accent]o[/] to open"
        )

    def load_solution(self) -> None:
        self.query_one("#solution-loading", LoadingIndicator).display = True
        self.query_one("#solution-scroll").display = False
        self.run_worker(
            lambda: self.extractor.solution(self.question),
            name="solution_loader",
            thread=True,
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if getattr(event.worker, "name", None) != "solution_loader":
            return
        if event.state in (WorkerState.PENDING, WorkerState.RUNNING):
            return
        if not self.is_mounted:
            return

        self.query_one("#solution-loading", LoadingIndicator).display = False
        self.query_one("#solution-scroll").display = True
        md = self.query_one("#solution-markdown", Markdown)
        if event.state is WorkerState.SUCCESS and event.worker.result is not None:
            md.update(render_solution(self.question, event.worker.result))
        else:
            logger.error("Solution worker failed: %s", getattr(event.worker, "error", None))
            md.update("**Unable to load solution.**")

    def action_open_in_browser(self) -> None:
        if self.question.link and self.question.link != "#":
            webbrowser.open(self.question.link)

    def action_reload_solution(self) -> None:
        self.load_solution()

    def action_scroll_down(self) -> None:
        self.query_one("#solution-scroll").scroll_down()

    def action_scroll_up(self) -> None:
        self.query_one("#solution-scroll").scroll_up()


# --- Prompt screens ---
class PromptScreen(Screen):
    """Single input box whose submission runs ``work`` in a thread worker."""

    BINDINGS = [Binding("escape", "app.pop_screen", "Cancel")]

    heading = ""
    placeholder = ""
    worker_name = "prompt_worker"

    def __init__(self, work: Callable[[str], Any]):
        super().__init__()
        self.work = work

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="prompt-body"):
            yield Label(self.heading, classes="settings-label")
            yield Input(placeholder=self.placeholder, id="prompt-input")
            yield LoadingIndicator(id="prompt-loading")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#prompt-loading", LoadingIndicator).display = False
        self.query_one("#prompt-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        if not text:
            self.app.notify("Input cannot be empty.", severity="error")
            return
        event.input.disabled = True
        self.query_one("#prompt-loading", LoadingIndicator).display = True
        self.run_worker(lambda: self.work(text), name=self.worker_name, thread=True)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if getattr(event.worker, "name", None) != self.worker_name:
            return
        if event.state is WorkerState.SUCCESS:
            self.dismiss(event.worker.result)
        elif event.state in (WorkerState.ERROR, WorkerState.CANCELLED):
            logger.error("%s failed: %s", self.worker_name, getattr(event.worker, "error", None))
            self.dismiss(None)


class AddQuestionScreen(PromptScreen):
    heading = "Paste a problem URL or describe the question"
    placeholder = "e.g. https://leetcode.com/problems/two-sum/"
    worker_name = "add_question"

    def __init__(self, store: ReconciliationStore, extractor: Extractor):
        super().__init__(lambda text: store.add_question(extractor.extract(text)))


class SearchScreen(PromptScreen):
    heading = "Describe what you want to practice"
    placeholder = "e.g. sliding window on strings"
    worker_name = "ai_search"

    def __init__(self, store: ReconciliationStore, extractor: Extractor):
        super().__init__(lambda text: extractor.search(text, store.effective_questions()))


class SettingsScreen(Screen):
    """Edit the sheet URL and the optional update endpoint."""

    BINDINGS = [
        Binding("escape", "app.pop_screen", "Back"),
    ]

    def __init__(self, config: Config):
        super().__init__()
        self.config = config

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="settings-body"):
            yield Label("Google Sheet URL", classes="settings-label")
            yield Input(
                value=self.config.sheet_url or "",
                placeholder="https://docs.google.com/spreadsheets/d/.../edit",
                id="sheet-url",
            )
            yield Static("The sheet must be shared as 'Anyone with the link can view'.")
            yield Label("Update endpoint URL (optional)", classes="settings-label")
            yield Input(
                value=self.config.endpoint_url or "",
                placeholder="https://script.google.com/macros/s/.../exec",
                id="endpoint-url",
            )
            yield Button("Save", id="save-settings", classes="settings-button")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "Settings"

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-settings":
            self.save_settings()

    def save_settings(self) -> None:
        sheet_url = self.query_one("#sheet-url", Input).value.strip()
        endpoint_url = self.query_one("#endpoint-url", Input).value.strip()
        self.dismiss(Config(sheet_url=sheet_url or None, endpoint_url=endpoint_url or None))
