"""
Question Tokenizer
==================
Slices one paper's text into ordered question records.

All marker positions are collected first; each question body is then the
span between one marker and the next (or the end of the text). Markers
are visited strictly left to right and each one exactly once.

Known limitation: whatever follows the real last question (answer keys,
footers) is folded into that question's body.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator

from .models import Question

logger = logging.getLogger(__name__)

# ─── Marker Pattern ───────────────────────────────────────────────────────────

# Matches "1)", "2a)", "3 b)", "Q. No. 4)", "Q.No.5a)" at the start of a line.
# Group 1 is the marker without the "Q. No." prefix.
QUESTION_MARKER_PATTERN = re.compile(
    r"^(?:Q\.?\s?No\.?\s*)?(\d+\s?[a-z]?\))", re.MULTILINE
)


@dataclass(frozen=True)
class QuestionSpan:
    """A marker and the [start, end) offsets of its body."""
    marker: str
    start: int
    end: int


def find_question_spans(text: str) -> list[QuestionSpan]:
    """Return one span per marker, in source order."""
    matches = list(QUESTION_MARKER_PATTERN.finditer(text))
    spans = []
    for idx, match in enumerate(matches):
        end = matches[idx + 1].start() if idx + 1 < len(matches) else len(text)
        spans.append(QuestionSpan(
            marker=match.group(1),
            start=match.end(),
            end=end,
        ))
    return spans


def tokenize_questions(text: str) -> Iterator[Question]:
    """Yield questions in source order, dropping markers with no body."""
    for span in find_question_spans(text):
        body = text[span.start:span.end].strip()
        if not body:
            logger.debug(f"Dropping empty question body for marker {span.marker!r}")
            continue
        yield Question(number=span.marker, text=body)
