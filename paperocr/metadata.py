"""
Metadata Extractor
==================
Independent pattern probes for the header fields of one paper.

OCR text is noisy and field order varies between scans, so each field is
probed on its own. A probe returns None on a miss and the default fill
happens in one place, `extract_metadata`.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import PaperMetadata

# ─── Field Patterns ───────────────────────────────────────────────────────────

# "CSEN3001", joint papers as "CSEN3001/CSEP3001"
SUBJECT_CODE_PATTERN = re.compile(
    r"\b([A-Z]{4,}\d{3,}(?:/[A-Z]{4,}\d{3,})?)\b"
)

# Subject name sits between "End Semester Examination: ... 2023" and the
# "Time:" / "[Max. Marks:" line. The hyphen before the year is optional.
SUBJECT_NAME_PATTERN = re.compile(
    r"End\s+Semester\s+Examination:.*?-?\s*\d{4}\s*([\s\S]*?)\s*(?:Time:|\[?Max\.\s*Marks:)",
    re.IGNORECASE,
)

# "Winter-2023", "Summer - 2024"
EXAMINATION_LABEL_PATTERN = re.compile(
    r"((?:Winter|Summer)\s*-?\s*\d{4})", re.IGNORECASE
)

MAX_MARKS_PATTERN = re.compile(r"Max\.\s*Marks:\s*(\d+)", re.IGNORECASE)

_WHITESPACE_RUN = re.compile(r"\s+")


def _first_group(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


# ─── Probes ───────────────────────────────────────────────────────────────────


def probe_subject_code(text: str) -> Optional[str]:
    return _first_group(SUBJECT_CODE_PATTERN, text)


def probe_subject_name(text: str) -> Optional[str]:
    """Subject name with line breaks and whitespace runs collapsed."""
    raw = _first_group(SUBJECT_NAME_PATTERN, text)
    if raw is None:
        return None
    return _WHITESPACE_RUN.sub(" ", raw.replace("\n", " ")).strip() or None


def probe_examination_label(text: str) -> Optional[str]:
    return _first_group(EXAMINATION_LABEL_PATTERN, text)


def probe_max_marks(text: str) -> Optional[int]:
    raw = _first_group(MAX_MARKS_PATTERN, text)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


# ─── Record Builder ───────────────────────────────────────────────────────────


def extract_metadata(text: str) -> PaperMetadata:
    """Run every probe and fill misses with the field defaults."""
    subject_code = probe_subject_code(text)
    subject_name = probe_subject_name(text)
    examination_label = probe_examination_label(text)
    max_marks = probe_max_marks(text)

    return PaperMetadata(
        subject_code=subject_code or "",
        subject_name=subject_name or "",
        examination_label=examination_label or "",
        max_marks=max_marks if max_marks is not None else 0,
    )
