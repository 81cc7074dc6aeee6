from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger("dsa")

QUOTE = '"'
SEPARATOR = ","


def parse_csv(text: str) -> List[List[str]]:
    """Split exported sheet text into rows of fields.

    Whitespace around a field is trimmed, but text inside quotes is kept
    exactly as written. Blank lines produce no row. A doubled quote inside a quoted field is a
    literal quote, and a line break inside a quoted field belongs to the
    field. Malformed quoting never raises: if the text ends inside an open
    quote, the dangling part is re-read line by line so one stray quote
    cannot swallow the rest of the sheet.
    """
    rows, dangling = _scan(text, quoted_newlines=True)
    if dangling is not None:
        logger.debug("Unbalanced quote at offset %d; re-reading tail by line", dangling)
        tail_rows, _ = _scan(text[dangling:], quoted_newlines=False)
        rows.extend(tail_rows)
    return rows


def _finish_field(chars: List[str], quoted: Optional[Tuple[int, int]]) -> str:
    """Join a field, trimming whitespace only outside its quoted span."""
    if quoted is None:
        return "".join(chars).strip()
    start, end = quoted
    return "".join(chars[:start]).lstrip() + "".join(chars[start:end]) + "".join(chars[end:]).rstrip()


def _scan(text: str, quoted_newlines: bool) -> Tuple[List[List[str]], Optional[int]]:
    rows: List[List[str]] = []
    row: List[str] = []
    current: List[str] = []
    quoted: Optional[Tuple[int, int]] = None
    in_quotes = False
    has_content = False
    row_start = 0

    def end_field() -> None:
        nonlocal current, quoted
        row.append(_finish_field(current, quoted))
        current, quoted = [], None

    def end_row() -> None:
        nonlocal row, current, quoted, in_quotes, has_content
        if has_content:
            end_field()
            rows.append(row)
        row, current, quoted, in_quotes, has_content = [], [], None, False, False

    i = 0
    n = len(text)
    while i < n:
        char = text[i]
        if char == "\n" and (not in_quotes or not quoted_newlines):
            end_row()
            i += 1
            row_start = i
            continue
        if not char.isspace():
            has_content = True
        if char == QUOTE:
            if in_quotes and i + 1 < n and text[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
                if quoted is None:
                    quoted = (len(current), len(current))
        elif char == SEPARATOR and not in_quotes:
            end_field()
        else:
            current.append(char)
        if in_quotes or char == QUOTE:
            quoted = (quoted[0], len(current))
        i += 1

    if in_quotes and quoted_newlines and "\n" in text[row_start:]:
        return rows, row_start
    end_row()
    return rows, None


def _quote_field(value: str) -> str:
    needs_quotes = (
        any(c in value for c in (SEPARATOR, QUOTE, "\n", "\r"))
        or value != value.strip()
    )
    if not needs_quotes:
        return value
    return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE


def _render_row(row: Sequence[str]) -> str:
    if len(row) == 1 and str(row[0]) == "":
        # A bare empty line would read back as no row at all.
        return QUOTE * 2
    return SEPARATOR.join(_quote_field(str(v)) for v in row)


def serialize_csv(rows: Iterable[Sequence[str]]) -> str:
    """Render rows in the format parse_csv reads back."""
    return "\n".join(_render_row(row) for row in rows)
