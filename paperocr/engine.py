"""
Extraction Engine
=================
Main orchestrator that combines page OCR, paper segmentation, assembly,
the validity gate and persistence into one upload pipeline.

Usage:
    engine = ExtractionEngine(config)
    summary = engine.process_pdf("path/to/scan.pdf", save=database.save_paper)

Architecture:
    PDF → PageAccumulator (PageRasterizer → TextRecognizer)* → full text →
    find_papers → assemble_paper → PaperValidator → save → UploadSummary
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .accumulator import PageAccumulator
from .assembler import assemble_paper
from .errors import InputError, NoValidPapersError, SegmentationEmptyError
from .models import (
    DEFAULT_INSTITUTION,
    Paper,
    SavedPaper,
    SaveOutcome,
    SkippedCandidate,
    SkipReason,
    UploadSummary,
)
from .rasterizer import PageRasterizer
from .recognizer import TextRecognizer
from .segmenter import (
    DEFAULT_INSTITUTION_INITIALS,
    DEFAULT_INSTITUTION_NAME,
    MIN_PAPER_LENGTH,
    build_anchor_pattern,
    find_papers,
)
from .validator import PaperValidator

logger = logging.getLogger(__name__)

SaveFn = Callable[[Paper], SaveOutcome]

_SAVE_SKIP_REASONS = {
    SaveOutcome.UNIQUENESS_CONFLICT: SkipReason.UNIQUENESS_CONFLICT,
    SaveOutcome.VALIDATION_ERROR: SkipReason.PERSISTENCE_INVALID,
}


@dataclass
class ExtractionConfig:
    """Configuration for the extraction engine."""

    # OCR settings
    dpi: int = 150
    image_format: str = "png"
    language: str = "eng"
    tesseract_cmd: Optional[str] = field(
        default_factory=lambda: os.environ.get("TESSERACT_CMD")
    )
    page_image_dir: Optional[str] = None

    # Segmentation
    min_paper_length: int = MIN_PAPER_LENGTH
    institution: str = DEFAULT_INSTITUTION
    institution_initials: tuple[str, ...] = DEFAULT_INSTITUTION_INITIALS
    institution_anchor_name: str = DEFAULT_INSTITUTION_NAME

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class ExtractionEngine:
    """
    Scanned exam paper extraction engine.

    Orchestrates the full pipeline:
        1. Page OCR (sequential, page order preserved)
        2. Paper segmentation on the institution header
        3. Metadata + question extraction per candidate
        4. Validity gate
        5. Persistence through a caller-supplied save function

    Each call works on its own temp files; one engine may serve many uploads.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        rasterizer: Optional[PageRasterizer] = None,
        recognizer: Optional[TextRecognizer] = None,
    ):
        self.config = config or ExtractionConfig()
        self._setup_logging()

        self.rasterizer = rasterizer or PageRasterizer(
            dpi=self.config.dpi,
            image_format=self.config.image_format,
            output_dir=self.config.page_image_dir,
        )
        self.recognizer = recognizer or TextRecognizer(
            tesseract_cmd=self.config.tesseract_cmd,
        )
        self.accumulator = PageAccumulator(
            self.rasterizer, self.recognizer, language=self.config.language
        )
        self.anchor = build_anchor_pattern(
            self.config.institution_initials,
            self.config.institution_anchor_name,
        )
        self.validator = PaperValidator()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        pkg_logger = logging.getLogger("paperocr")
        pkg_logger.setLevel(log_level)

        # Console handler
        if not pkg_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            formatter = logging.Formatter(
                "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            console.setFormatter(formatter)
            pkg_logger.addHandler(console)

        # File handler
        if self.config.log_file:
            log_dir = Path(self.config.log_file).parent
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(
                self.config.log_file, encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(
                "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ))
            pkg_logger.addHandler(file_handler)

    # ─── Stages ───────────────────────────────────────────────────────────

    def extract_text(
        self,
        pdf_path: str,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> str:
        """
        OCR every page of a PDF into one text blob.

        Raises:
            InputError: If the PDF doesn't exist.
            RecognitionError: If any page fails.
        """
        if not pdf_path or not os.path.exists(pdf_path):
            raise InputError(f"PDF not found: {pdf_path}")

        page_count = self.rasterizer.page_count(pdf_path)
        return self.accumulator.accumulate(
            pdf_path, page_count, progress_callback=progress_callback
        )

    def parse_text(self, text: str) -> list[Paper]:
        """Segment OCR text and assemble every candidate. No gate applied."""
        candidates = find_papers(
            text, anchor=self.anchor, min_length=self.config.min_paper_length
        )
        return [
            assemble_paper(candidate, institution=self.config.institution)
            for candidate in candidates
        ]

    def process_text(self, text: str, save: SaveFn) -> UploadSummary:
        """
        Gate and persist every paper found in `text`.

        Per-paper failures are recorded on the summary and never abort
        the batch.

        Raises:
            SegmentationEmptyError: If no candidate papers were found.
            NoValidPapersError: If candidates exist but none was saved.
        """
        papers = self.parse_text(text)
        if not papers:
            raise SegmentationEmptyError()

        summary = UploadSummary(candidates_found=len(papers))

        for idx, paper in enumerate(papers):
            reason = self.validator.check(paper)
            if reason is None:
                outcome = save(paper)
                reason = _SAVE_SKIP_REASONS.get(outcome)

            if reason is not None:
                logger.warning(
                    f"Skipping candidate {idx} "
                    f"(subject_code={paper.subject_code or '-'}): {reason.value}"
                )
                summary.skipped.append(SkippedCandidate(
                    index=idx,
                    subject_code=paper.subject_code,
                    reason=reason,
                ))
                continue

            summary.saved.append(SavedPaper(
                subject_code=paper.subject_code,
                questions_found=len(paper.questions),
            ))

        self.validator.report(summary)

        if not summary.saved:
            raise NoValidPapersError(summary)

        return summary

    def process_pdf(
        self,
        pdf_path: str,
        save: SaveFn,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> UploadSummary:
        """Full pipeline: OCR, segment, assemble, gate, persist."""
        start_time = time.time()
        logger.info(f"Starting extraction of: {pdf_path}")

        text = self.extract_text(pdf_path, progress_callback=progress_callback)
        summary = self.process_text(text, save)

        elapsed = time.time() - start_time
        logger.info(
            f"Extraction complete in {elapsed:.2f}s — "
            f"{summary.count} paper(s) saved"
        )
        return summary
