from __future__ import annotations

from typing import Any, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.timer import Timer
from textual.worker import Worker, WorkerState
from textual.widgets import Header, Input, ListView, LoadingIndicator, Static

from .config import UI_DEFAULTS, Config, logger
from .datamodels import AddResult, Question, SearchResult, StatusFilter
from .extractor import Extractor
from .preferences import PreferenceStore
from .screens import AddQuestionScreen, SearchScreen, SettingsScreen, SolutionScreen
from .sheet.fetcher import SheetFetcher
from .store import ReconciliationStore, Settlement
from .widgets import ErrorMessage, QuestionItem, StatusBar

FILTER_CYCLE = [StatusFilter.ALL, StatusFilter.PENDING, StatusFilter.SOLVED]
HIGHLIGHT_SECONDS = 3


class DashboardApp(App):
    TITLE = "DSA Dashboard"
    SUB_TITLE = "Practice questions from your Google Sheet"

    CSS = """
    #question-filter { display: none; }
    .question-container { height: 1; }
    .question-pin { width: 2; }
    .question-status { width: 12; }
    .question-name { width: 1fr; }
    .question-topic { width: 24; color: $text-muted; }
    .question-platform { width: 14; color: $text-muted; }
    QuestionItem.highlighted-question { background: $accent 40%; }
    .settings-label { margin-top: 1; }
    StatusBar { dock: bottom; height: 1; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("space", "toggle_status", "Solved"),
        Binding("p", "toggle_pinned", "Pin"),
        Binding("f", "cycle_filter", "Filter"),
        Binding("x", "random_pending", "Random"),
        Binding("a", "add_question", "Add"),
        Binding("s", "show_settings", "Settings"),
        Binding("ctrl+f", "ai_search", "AI Search"),
        Binding("/", "focus_filter", "Search"),
    ]

    def __init__(
        self,
        config: Config,
        preferences: PreferenceStore,
        fetcher: SheetFetcher,
        store: ReconciliationStore,
        extractor: Extractor,
        ui_config: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.config = config
        self.preferences = preferences
        self.fetcher = fetcher
        self.store = store
        self.extractor = extractor
        self.ui_config = ui_config or {}
        self.status_filter = StatusFilter.ALL
        self.text_query = ""
        self.highlighted: Optional[str] = None
        self._highlight_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main"):
            yield Static("All questions", id="filter-title", classes="pane-title")
            yield Input(placeholder="Filter questions...", id="question-filter")
            yield ListView(id="questions-list")
        yield StatusBar()

    def on_mount(self) -> None:
        keybindings_text = self.ui_config.get(
            "statusbar_keybindings", UI_DEFAULTS["statusbar_keybindings"]
        )
        self.query_one(StatusBar).set_keybindings(keybindings_text.format(color="$accent"))
        self.query_one("#questions-list", ListView).focus()
        self.load_questions()

    # --- Loading ---

    def load_questions(self) -> None:
        token = self.store.begin_refresh()
        self.query_one(StatusBar).loading_status = "Loading questions from Google Sheets..."
        questions_list = self.query_one("#questions-list", ListView)
        questions_list.clear()
        questions_list.mount(LoadingIndicator())
        self.run_worker(
            lambda: (token, self.fetcher.load_questions()),
            name="questions_loader",
            thread=True,
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        name = getattr(event.worker, "name", None)
        if event.state is WorkerState.SUCCESS:
            if name == "questions_loader":
                self._handle_questions_loaded(*event.worker.result)
            elif name == "mutation":
                self._handle_settled(event.worker.result)
        elif event.state is WorkerState.ERROR:
            logger.error("Worker %s failed: %s", name, event.worker.error)
            if name == "questions_loader":
                self._show_error("Failed to load questions.", str(event.worker.error))

    def _handle_questions_loaded(self, token: int, result: dict) -> None:
        status_bar = self.query_one(StatusBar)
        if "error" in result:
            if self.store.apply_snapshot(token, []):
                status_bar.loading_status = ""
                self._show_error(result["error"], result.get("details", ""))
            return
        if self.store.apply_snapshot(token, result["questions"]):
            status_bar.loading_status = ""
            self.refresh_questions()

    def _show_error(self, error: str, details: str) -> None:
        questions_list = self.query_one("#questions-list", ListView)
        questions_list.clear()
        questions_list.mount(
            ErrorMessage(
                f"No questions loaded. {error}: {details}\n"
                "Make sure the sheet is public with columns: name, platform, link, "
                "topic, status, pinned. Press r to try again or s to change the sheet."
            )
        )
        self.query_one(StatusBar).set_counts(self.store.stats())

    def refresh_questions(self) -> None:
        """Re-render the list from the store's effective view."""
        questions_list = self.query_one("#questions-list", ListView)
        selected = self._selected_question()
        index = questions_list.index
        questions_list.clear()
        questions = self.store.view(self.status_filter, self.text_query)
        for question in questions:
            item = QuestionItem(question)
            if question.name == self.highlighted:
                item.add_class("highlighted-question")
            questions_list.append(item)
        names = [q.name for q in questions]
        if selected and selected.name in names:
            questions_list.index = names.index(selected.name)
        elif index is not None and questions:
            questions_list.index = min(index, len(questions) - 1)
        self.query_one(StatusBar).set_counts(self.store.stats())

    def _selected_question(self) -> Optional[Question]:
        item = self.query_one("#questions-list", ListView).highlighted_child
        return item.question if isinstance(item, QuestionItem) else None

    # --- Mutations ---

    def _start_mutation(self, begin) -> None:
        question = self._selected_question()
        if question is None:
            return
        mutation = begin(question.name)
        self.refresh_questions()
        self.run_worker(lambda: self.store.settle(mutation), name="mutation", thread=True)

    def _handle_settled(self, settlement: Settlement) -> None:
        if settlement.rolled_back:
            self.notify(settlement.notice or "Update failed.", severity="error", timeout=5)
            self.refresh_questions()
        else:
            logger.info("%s (%s)", settlement.dispatch.message, settlement.dispatch.outcome.value)

    def action_toggle_status(self) -> None:
        self._start_mutation(self.store.begin_toggle_status)

    def action_toggle_pinned(self) -> None:
        self._start_mutation(self.store.begin_toggle_pinned)

    def action_add_question(self) -> None:
        self.push_screen(AddQuestionScreen(self.store, self.extractor), self.on_question_added)

    def on_question_added(self, result: Optional[AddResult]) -> None:
        if result is None:
            self.notify("Could not add the question.", severity="error")
            return
        message = result.dispatch.message
        if result.dispatch.note:
            message = f"{message}. {result.dispatch.note}"
        self.notify(message)
        self.refresh_questions()

    # --- Navigation and views ---

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, QuestionItem):
            self.push_screen(SolutionScreen(event.item.question, self.extractor))

    def action_refresh(self) -> None:
        self.load_questions()

    def action_cycle_filter(self) -> None:
        position = FILTER_CYCLE.index(self.status_filter)
        self.status_filter = FILTER_CYCLE[(position + 1) % len(FILTER_CYCLE)]
        self.query_one("#filter-title", Static).update(
            f"{self.status_filter.value.capitalize()} questions"
        )
        self.refresh_questions()

    def action_random_pending(self) -> None:
        question = self.store.pick_random_pending()
        if question is None:
            self.notify("No pending questions.")
            return
        self.highlight(question.name)

    def highlight(self, name: str) -> None:
        if self.status_filter is StatusFilter.SOLVED:
            self.status_filter = StatusFilter.ALL
        self.text_query = ""
        self.highlighted = name
        self.refresh_questions()
        if self._highlight_timer is not None:
            self._highlight_timer.stop()
        self._highlight_timer = self.set_timer(HIGHLIGHT_SECONDS, self._clear_highlight)

    def _clear_highlight(self) -> None:
        self._highlight_timer = None
        if self.highlighted is None or not self.is_running:
            return
        self.highlighted = None
        for item in self.query(QuestionItem):
            item.remove_class("highlighted-question")

    def action_ai_search(self) -> None:
        self.push_screen(SearchScreen(self.store, self.extractor), self.on_search_done)

    def on_search_done(self, result: Optional[SearchResult]) -> None:
        if result is None:
            self.notify("Search failed.", severity="error")
            return
        self.notify(result.explanation, timeout=8)
        if result.suggested_question:
            self.highlight(result.suggested_question)

    def action_show_settings(self) -> None:
        self.push_screen(SettingsScreen(self.config), self.on_settings_closed)

    def on_settings_closed(self, config: Optional[Config]) -> None:
        if config is None or config == self.config:
            return
        config.save(self.preferences)
        self.config = config
        self.fetcher.reconfigure(config)
        self.store.reconfigure(config)
        self.notify("Settings saved!")
        self.load_questions()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "question-filter":
            self.text_query = event.value
            self.refresh_questions()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "question-filter":
            if not event.input.value:
                event.input.display = False
            self.query_one("#questions-list", ListView).focus()

    def action_focus_filter(self) -> None:
        """Focus the filter input."""
        filter_input = self.query_one("#question-filter")
        filter_input.display = True
        filter_input.focus()
