from __future__ import annotations

import logging
from typing import List, Sequence

from ..datamodels import Question
from ..errors import ParseError
from .tokenizer import parse_csv

logger = logging.getLogger("dsa")

# Column order in the sheet: name, platform, link, topic, status, pinned.
COLUMNS = ("name", "platform", "link", "topic", "status", "pinned")
DEFAULT_STATUS = "Pending"


def _field(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def map_row(row: Sequence[str]) -> Question:
    """Map one positional sheet row to a Question."""
    values = {column: _field(row, index) for index, column in enumerate(COLUMNS)}
    values["status"] = values["status"] or DEFAULT_STATUS
    values["pinned"] = values["pinned"].strip().lower() == "true"
    return Question(**values)


def _has_content(question: Question) -> bool:
    return bool(question.name.strip() or question.platform.strip() or question.link.strip())


def rows_to_questions(rows: Sequence[Sequence[str]]) -> List[Question]:
    """Skip the header row, map the rest and drop rows without identifying fields."""
    if not rows:
        raise ParseError("No data found in the spreadsheet")
    questions = []
    for index, row in enumerate(rows[1:], start=1):
        question = map_row(row)
        if _has_content(question):
            questions.append(question)
        else:
            logger.debug("Dropping empty row %d: %r", index, row)
    logger.info("Mapped %d questions from %d data rows", len(questions), len(rows) - 1)
    if not questions:
        raise ParseError("No data found in the spreadsheet")
    return questions


def parse_questions(text: str) -> List[Question]:
    return rows_to_questions(parse_csv(text))
