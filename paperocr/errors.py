"""
Extraction Errors
=================
Request-level failures raised by the upload pipeline.

Per-paper problems (validity gate, uniqueness conflicts) are never raised;
they are recorded as skipped candidates on the UploadSummary.
"""

from __future__ import annotations

from typing import Optional

from .models import UploadSummary


class ExtractionError(Exception):
    """Base class for expected upload failures."""


class InputError(ExtractionError):
    """No usable file was supplied."""


class RecognitionError(ExtractionError):
    """A page could not be rasterized or recognized."""

    def __init__(self, page_number: int, cause: Optional[BaseException] = None):
        self.page_number = page_number
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"OCR failed on page {page_number}{detail}")


class SegmentationEmptyError(ExtractionError):
    """OCR succeeded but no paper boundaries were found."""

    def __init__(self, message: str = "Could not find any papers in the PDF."):
        super().__init__(message)


class NoValidPapersError(ExtractionError):
    """Papers were found but none passed validation or persistence."""

    def __init__(
        self,
        summary: UploadSummary,
        message: str = "PDF processed, but no valid papers with questions found.",
    ):
        self.summary = summary
        super().__init__(message)
