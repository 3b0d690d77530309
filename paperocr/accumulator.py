"""
Page Accumulator
================
Runs rasterize → recognize for every page, in order, and concatenates the
recognized text into one document string.

Each page is processed as a self-contained stage that returns a PageResult
instead of raising. The accumulator currently treats the first failed page
as fatal for the whole document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from . import storage
from .errors import RecognitionError
from .rasterizer import PageRasterizer
from .recognizer import TextRecognizer

logger = logging.getLogger(__name__)


@dataclass
class PageResult:
    """Outcome of OCR for one page."""
    page_number: int
    text: str = ""
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PageAccumulator:
    """
    Sequential page-by-page OCR.

    Pages are never processed in parallel; the output keeps page order.
    """

    def __init__(
        self,
        rasterizer: PageRasterizer,
        recognizer: TextRecognizer,
        language: str = "eng",
    ):
        self.rasterizer = rasterizer
        self.recognizer = recognizer
        self.language = language

    def process_page(self, pdf_path: str, page_number: int) -> PageResult:
        """Rasterize and recognize one page. The page image is always deleted."""
        try:
            image_path = self.rasterizer.rasterize(pdf_path, page_number)
        except Exception as e:
            logger.error(f"Rasterization failed on page {page_number}: {e}")
            return PageResult(page_number=page_number, error=e)

        with storage.scoped_file(image_path):
            try:
                text = self.recognizer.recognize(image_path, self.language)
            except Exception as e:
                logger.error(f"OCR failed on page {page_number}: {e}")
                return PageResult(page_number=page_number, error=e)

        return PageResult(page_number=page_number, text=text)

    def accumulate(
        self,
        pdf_path: str,
        page_count: int,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> str:
        """
        OCR pages 1..page_count and return the joined text.

        Raises:
            RecognitionError: On the first page that fails.
        """
        logger.info(f"Running OCR on {page_count} page(s) of {pdf_path}")

        chunks: list[str] = []
        for page_number in range(1, page_count + 1):
            result = self.process_page(pdf_path, page_number)
            if not result.ok:
                raise RecognitionError(page_number, result.error) from result.error

            chunks.append(result.text + "\n")

            if progress_callback:
                progress_callback(page_number, page_count)

        full_text = "".join(chunks)
        logger.info(f"OCR complete: {len(full_text)} chars from {page_count} page(s)")
        return full_text
