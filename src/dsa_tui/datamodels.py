from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


# --- Data models ---
@dataclass
class Question:
    name: str
    platform: str = ""
    link: str = ""
    topic: str = ""
    status: str = "Pending"
    pinned: bool = False

    @property
    def is_solved(self) -> bool:
        return self.status.strip().lower() == "solved"

    @property
    def is_pending(self) -> bool:
        return self.status.strip().lower() == "pending"

    def with_overrides(self, status: Optional[str] = None, pinned: Optional[bool] = None) -> "Question":
        return replace(
            self,
            status=self.status if status is None else status,
            pinned=self.pinned if pinned is None else pinned,
        )


@dataclass
class QuestionDraft:
    name: str = "Generated Question"
    platform: str = "Other"
    link: str = "#"
    topic: str = "General"
    status: str = "Pending"
    pinned: bool = True
    description: str = "Generated question from user input"

    def to_question(self) -> Question:
        return Question(
            name=self.name,
            platform=self.platform,
            link=self.link,
            topic=self.topic,
            status=self.status,
            pinned=self.pinned,
        )


@dataclass
class Solution:
    question_link: str
    description: str
    input_output: str
    approach: str
    cpp_solution: str


@dataclass
class SearchResult:
    suggested_question: Optional[str]
    explanation: str
    alternative_matches: List[str] = field(default_factory=list)


class RemoteOutcome(enum.Enum):
    SUCCESS = "remote_success"
    SKIPPED = "remote_skipped"
    FAILED = "remote_failed"


@dataclass
class DispatchResult:
    method: str
    outcome: RemoteOutcome
    message: str
    success: bool = True
    details: Optional[str] = None
    row: Optional[int] = None
    note: Optional[str] = None
    setup_instructions: Optional[Dict[str, Any]] = None


@dataclass
class AddResult:
    question: Question
    dispatch: DispatchResult
    description: str = ""


class StatusFilter(str, enum.Enum):
    ALL = "all"
    PENDING = "pending"
    SOLVED = "solved"
