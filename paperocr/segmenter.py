"""
Paper Segmenter
===============
Splits the full OCR text of an upload into one candidate substring per
exam paper, using the institution header printed at the top of every
paper as the boundary anchor.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_INSTITUTION_INITIALS = ("G", "H")
DEFAULT_INSTITUTION_NAME = "Raisoni College of Engineering"

# Candidates shorter than this (after trimming) are header mentions or OCR
# noise, not real papers.
MIN_PAPER_LENGTH = 300


def build_anchor_pattern(
    initials: Sequence[str] = DEFAULT_INSTITUTION_INITIALS,
    name: str = DEFAULT_INSTITUTION_NAME,
) -> re.Pattern:
    """
    Build a case-insensitive header pattern.

    Initials may be dotted and spaced ("G. H.", "G.H.", "G H") or run
    together ("GH") in the OCR output.
    """
    dotted = "".join(rf"{re.escape(i)}\.?\s*" for i in initials)
    joined = re.escape("".join(initials)) + r"\s*"
    words = r"\s+".join(re.escape(w) for w in name.split())
    if not initials:
        return re.compile(words, re.IGNORECASE)
    return re.compile(rf"(?:{dotted}|{joined}){words}", re.IGNORECASE)


PAPER_ANCHOR_PATTERN = build_anchor_pattern()


def find_papers(
    text: str,
    anchor: Optional[re.Pattern] = None,
    min_length: int = MIN_PAPER_LENGTH,
) -> Iterator[str]:
    """
    Yield candidate paper substrings in source order.

    Each candidate starts at an anchor and runs up to the next anchor, or
    to the end of the text for the last one. Text before the first anchor
    belongs to no paper.
    """
    anchor = anchor or PAPER_ANCHOR_PATTERN
    starts = [m.start() for m in anchor.finditer(text)]
    if not starts:
        logger.info("No institution header found in OCR text")
        return

    bounds = starts[1:] + [len(text)]
    for start, end in zip(starts, bounds):
        candidate = text[start:end]
        if len(candidate.strip()) < min_length:
            logger.debug(
                f"Discarding short candidate at offset {start} "
                f"({len(candidate.strip())} chars)"
            )
            continue
        yield candidate
