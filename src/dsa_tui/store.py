"""In-memory question list layered with the user's local edits.

The store keeps the last fetched sheet snapshot and two override maps
(status-by-name and pinned-by-name). What the UI shows is always the
snapshot with overrides applied; nothing else is persisted.

Toggles are optimistic: the override changes first, the mutation is then
dispatched and the change is either committed or rolled back.
"""
from __future__ import annotations

import enum
import logging
import random
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .config import OVERRIDES_FILE, Config, load_overrides, save_overrides
from .datamodels import (
    AddResult,
    DispatchResult,
    Question,
    QuestionDraft,
    RemoteOutcome,
    StatusFilter,
)
from .dispatcher import MutationDispatcher

logger = logging.getLogger("dsa")

STATUS = "status"
PINNED = "pinned"


class MutationState(enum.Enum):
    IDLE = "idle"
    OPTIMISTIC = "optimistic"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class PendingMutation:
    name: str
    field: str
    value: Any
    previous: Any
    generation: int
    state: MutationState = MutationState.IDLE


@dataclass
class Settlement:
    mutation: PendingMutation
    dispatch: DispatchResult
    notice: Optional[str] = None

    @property
    def rolled_back(self) -> bool:
        return self.mutation.state is MutationState.ROLLED_BACK


def next_status(current: str) -> str:
    return "Pending" if current.strip().lower() == "solved" else "Solved"


class ReconciliationStore:
    def __init__(
        self,
        dispatcher: MutationDispatcher,
        overrides_path: str = OVERRIDES_FILE,
        strict_sync: bool = True,
    ):
        self.dispatcher = dispatcher
        self.overrides_path = overrides_path
        self.strict_sync = strict_sync
        self.questions: List[Question] = []
        self.overrides = load_overrides(overrides_path)
        self._generations: Dict[Tuple[str, str], int] = {}
        self._inflight: Dict[Tuple[str, str], List[PendingMutation]] = {}
        self._fetch_token = 0
        self._lock = threading.RLock()

    def reconfigure(self, config: Config) -> None:
        self.dispatcher.reconfigure(config)

    # --- Snapshot ---

    def begin_refresh(self) -> int:
        """Return a token identifying the newest fetch request."""
        with self._lock:
            self._fetch_token += 1
            return self._fetch_token

    def apply_snapshot(self, token: int, questions: List[Question]) -> bool:
        """Replace the snapshot unless a newer fetch has been started since."""
        with self._lock:
            if token != self._fetch_token:
                logger.debug("Discarding stale snapshot (token %d, latest %d)", token, self._fetch_token)
                return False
            self.questions = list(questions)
            logger.info("Loaded %d questions", len(self.questions))
            return True

    # --- Projection ---

    def effective(self, question: Question) -> Question:
        with self._lock:
            return question.with_overrides(
                status=self.overrides[STATUS].get(question.name),
                pinned=self.overrides[PINNED].get(question.name),
            )

    def effective_questions(self) -> List[Question]:
        with self._lock:
            return [self.effective(q) for q in self.questions]

    def find(self, name: str) -> Optional[Question]:
        for question in self.effective_questions():
            if question.name == name:
                return question
        return None

    def view(self, status_filter: StatusFilter = StatusFilter.ALL, query: str = "") -> List[Question]:
        """Effective questions filtered by status and text, pinned ones first."""
        questions = self.effective_questions()
        if status_filter is StatusFilter.SOLVED:
            questions = [q for q in questions if q.is_solved]
        elif status_filter is StatusFilter.PENDING:
            questions = [q for q in questions if q.is_pending]
        query = query.strip().lower()
        if query:
            questions = [
                q
                for q in questions
                if query in q.name.lower() or query in q.topic.lower() or query in q.platform.lower()
            ]
        return sorted(questions, key=lambda q: not q.pinned)

    def stats(self) -> Dict[str, int]:
        questions = self.effective_questions()
        return {
            "total": len(questions),
            "solved": sum(1 for q in questions if q.is_solved),
            "pending": sum(1 for q in questions if q.is_pending),
        }

    def pick_random_pending(self, rng: Optional[random.Random] = None) -> Optional[Question]:
        pending = [q for q in self.effective_questions() if q.is_pending]
        if not pending:
            return None
        return pending[(rng or random).randrange(len(pending))]

    # --- Optimistic mutations ---

    def _save(self) -> None:
        save_overrides(self.overrides, self.overrides_path)

    def apply_optimistic(self, name: str, field: str, value: Any) -> PendingMutation:
        if field not in (STATUS, PINNED):
            raise ValueError(f"Unknown field: {field}")
        with self._lock:
            current = self.find(name)
            if current is None:
                raise KeyError(name)
            key = (name, field)
            generation = self._generations.get(key, 0) + 1
            self._generations[key] = generation
            mutation = PendingMutation(
                name=name,
                field=field,
                value=value,
                previous=getattr(current, field),
                generation=generation,
            )
            self.overrides[field][name] = value
            mutation.state = MutationState.OPTIMISTIC
            self._inflight.setdefault(key, []).append(mutation)
            self._save()
        logger.debug("Optimistic %s=%r for %s", field, value, name)
        return mutation

    def _settled(self, mutation: PendingMutation) -> Optional[PendingMutation]:
        """Drop a mutation from the in-flight list; return the next newer one, if any."""
        key = (mutation.name, mutation.field)
        inflight = self._inflight.get(key, [])
        newer = [m for m in inflight if m.generation > mutation.generation]
        remaining = [m for m in inflight if m is not mutation]
        if remaining:
            self._inflight[key] = remaining
        else:
            self._inflight.pop(key, None)
        return min(newer, key=lambda m: m.generation) if newer else None

    def commit(self, mutation: PendingMutation) -> None:
        with self._lock:
            mutation.state = MutationState.COMMITTED
            self._settled(mutation)
            self._save()
        logger.debug("Committed %s=%r for %s", mutation.field, mutation.value, mutation.name)

    def rollback(self, mutation: PendingMutation) -> None:
        """Undo a failed mutation.

        If a newer toggle on the same field is still in flight, the override is
        left alone and that toggle inherits this one's ``previous`` value, so a
        later failure of the newer toggle restores the value from before both.
        """
        with self._lock:
            mutation.state = MutationState.ROLLED_BACK
            newer = self._settled(mutation)
            if newer is not None:
                newer.previous = mutation.previous
                logger.debug("Rollback of %s for %s deferred to generation %d", mutation.field, mutation.name, newer.generation)
                return
            self.overrides[mutation.field][mutation.name] = mutation.previous
            self._save()
        logger.info("Rolled back %s for %s to %r", mutation.field, mutation.name, mutation.previous)

    def begin_toggle_status(self, name: str) -> PendingMutation:
        current = self.find(name)
        if current is None:
            raise KeyError(name)
        return self.apply_optimistic(name, STATUS, next_status(current.status))

    def begin_toggle_pinned(self, name: str) -> PendingMutation:
        current = self.find(name)
        if current is None:
            raise KeyError(name)
        return self.apply_optimistic(name, PINNED, not current.pinned)

    def settle(self, mutation: PendingMutation) -> Settlement:
        """Dispatch an optimistic change, then commit or roll it back."""
        if mutation.field == STATUS:
            result = self.dispatcher.update_status(mutation.name, mutation.value)
        else:
            result = self.dispatcher.update_pinned(mutation.name, mutation.value)

        if result.outcome is RemoteOutcome.FAILED and self.strict_sync:
            self.rollback(mutation)
            return Settlement(
                mutation,
                result,
                notice=f'Could not update "{mutation.name}": {result.details or "sync failed"}',
            )
        self.commit(mutation)
        return Settlement(mutation, result)

    def toggle_status(self, name: str) -> Settlement:
        return self.settle(self.begin_toggle_status(name))

    def toggle_pinned(self, name: str) -> Settlement:
        return self.settle(self.begin_toggle_pinned(name))

    # --- New questions ---

    def add_question(self, draft: QuestionDraft) -> AddResult:
        question = draft.to_question()
        with self._lock:
            self.questions.append(question)
        result = self.dispatcher.add_question(
            {
                "name": question.name,
                "platform": question.platform,
                "link": question.link,
                "topic": question.topic,
                "status": question.status,
                "pinned": question.pinned,
            }
        )
        logger.info("Added %s (%s)", question.name, result.method)
        return AddResult(question=question, dispatch=result, description=draft.description)
