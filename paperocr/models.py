"""
Data Models
===========
Pydantic models for reconstructed exam papers and upload summaries.
All models are serializable to JSON for the HTTP layer and SQLite rows.

Extraction models carry no timestamps or generated ids, so parsing the
same OCR text twice yields identical values.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


DEFAULT_INSTITUTION = "G. H. Raisoni College of Engineering, Nagpur"


# ─── Enums ────────────────────────────────────────────────────────────────────


class SkipReason(str, Enum):
    """Why a candidate paper was not persisted."""
    MISSING_SUBJECT_CODE = "missing_subject_code"
    NO_QUESTIONS = "no_questions"
    UNIQUENESS_CONFLICT = "uniqueness_conflict"
    PERSISTENCE_INVALID = "persistence_invalid"


class SaveOutcome(str, Enum):
    """Result of handing a paper to the persistence layer."""
    SAVED = "saved"
    UNIQUENESS_CONFLICT = "uniqueness_conflict"
    VALIDATION_ERROR = "validation_error"


# ─── Question Models ──────────────────────────────────────────────────────────


class TableData(BaseModel):
    """Tabular context attached to a question."""
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)


class Question(BaseModel):
    """
    One question inside a paper.

    `marks` and `course_outcome` are left empty by extraction; they are
    filled in by later enrichment.
    """
    number: str = Field(description="Raw question marker, e.g. '2a)'")
    text: str
    marks: Optional[int] = None
    course_outcome: str = ""
    table_data: Optional[TableData] = None
    image_description: str = ""


# ─── Paper Models ─────────────────────────────────────────────────────────────


class PaperMetadata(BaseModel):
    """Scalar fields probed out of one candidate paper's text."""
    subject_code: str = ""
    subject_name: str = ""
    examination_label: str = ""
    max_marks: int = Field(default=0, ge=0)


class Paper(PaperMetadata):
    """
    A fully assembled exam paper.
    Identity for persistence is (subject_code, session, term).
    """
    institution: str = DEFAULT_INSTITUTION
    term: str = ""
    questions: list[Question] = Field(default_factory=list)

    @computed_field
    @property
    def session(self) -> str:
        return self.examination_label

    @computed_field
    @property
    def question_count(self) -> int:
        return len(self.questions)


# ─── Upload Result Models ─────────────────────────────────────────────────────


class SavedPaper(BaseModel):
    subject_code: str
    questions_found: int


class SkippedCandidate(BaseModel):
    """A candidate that failed the validity gate or was rejected on save."""
    index: int = Field(ge=0, description="Position among segmented candidates")
    subject_code: str = ""
    reason: SkipReason


class UploadSummary(BaseModel):
    """
    Outcome of one upload.
    This is the top-level JSON structure returned to the HTTP caller.
    """
    candidates_found: int = 0
    saved: list[SavedPaper] = Field(default_factory=list)
    skipped: list[SkippedCandidate] = Field(default_factory=list)

    @computed_field
    @property
    def count(self) -> int:
        return len(self.saved)
