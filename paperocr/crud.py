"""
CRUD Service Layer
==================
High-level upload operation that coordinates the filesystem, the
extraction engine and SQLite.
This is the ONLY layer that should be called from API endpoints.
"""

from __future__ import annotations

import logging
import os
from functools import partial
from typing import Callable, Optional

from . import database as db
from . import storage
from .engine import ExtractionConfig, ExtractionEngine
from .errors import InputError
from .models import UploadSummary

logger = logging.getLogger(__name__)


# ─── Upload & Extract (Main Flow) ─────────────────────────────────────────────


def upload_and_extract(
    pdf_path: Optional[str],
    original_filename: str = "",
    config: Optional[ExtractionConfig] = None,
    engine: Optional[ExtractionEngine] = None,
    db_path: str = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> UploadSummary:
    """
    Full upload→OCR→extract→persist pipeline.

    Steps:
        1. OCR every page of the uploaded PDF
        2. Segment the text into candidate papers
        3. Extract metadata + questions per candidate
        4. Skip candidates that fail the validity gate
        5. Save the rest to SQLite, skipping uniqueness conflicts
        6. Delete the uploaded PDF, on success and on failure

    Args:
        pdf_path: Path to the uploaded (temporary) PDF file.
        original_filename: Upload filename, used only for logging.
        config: Engine configuration (ignored if `engine` is given).
        engine: Pre-built engine.
        db_path: SQLite database path override.
        progress_callback: Optional callback(current_page, total_pages).

    Returns:
        UploadSummary with the saved and skipped papers.

    Raises:
        InputError: No file was supplied.
        RecognitionError: A page failed OCR.
        SegmentationEmptyError: No papers were found in the text.
        NoValidPapersError: Papers were found but none was saved.
    """
    if not pdf_path:
        raise InputError("No file uploaded.")

    pdf_path = os.path.abspath(pdf_path)
    if not os.path.exists(pdf_path):
        raise InputError(f"PDF not found: {pdf_path}")

    filename = original_filename or os.path.basename(pdf_path)
    logger.info(f"[upload_and_extract] DB path: {db_path or db.get_db_path()}")
    logger.info(f"[upload_and_extract] Starting pipeline for: {filename}")

    engine = engine or ExtractionEngine(config)

    with storage.scoped_file(pdf_path):
        try:
            summary = engine.process_pdf(
                pdf_path,
                save=partial(db.save_paper, db_path=db_path),
                progress_callback=progress_callback,
            )
        except Exception as e:
            logger.error(f"[upload_and_extract] {filename}: {e}")
            raise

    logger.info(
        f"[upload_and_extract] Saved {summary.count} of "
        f"{summary.candidates_found} paper(s) from {filename}"
    )
    return summary
