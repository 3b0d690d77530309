"""
Page Rasterizer
===============
Renders single PDF pages to image files using PyMuPDF (fitz).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from . import storage

logger = logging.getLogger(__name__)


class PageRasterizer:
    """
    Renders one page at a time to a PNG in the page image directory.
    Callers own the returned file and must delete it.
    """

    def __init__(
        self,
        dpi: int = 150,
        image_format: str = "png",
        output_dir: Optional[str] = None,
    ):
        self.dpi = dpi
        self.image_format = image_format
        self.output_dir = Path(output_dir) if output_dir else storage.PAGES_DIR

    def page_count(self, pdf_path: str) -> int:
        """Get total number of pages in the PDF."""
        with fitz.open(pdf_path) as doc:
            return doc.page_count

    def rasterize(self, pdf_path: str, page_number: int) -> str:
        """
        Render a page to an image file.

        Args:
            pdf_path: Path to the PDF file.
            page_number: 1-indexed page number.

        Returns:
            Absolute path of the rendered image.

        Raises:
            ValueError: If the page number is out of range.
        """
        with fitz.open(pdf_path) as doc:
            if not 1 <= page_number <= doc.page_count:
                raise ValueError(
                    f"Page {page_number} out of range (1-{doc.page_count})"
                )
            pix = doc[page_number - 1].get_pixmap(dpi=self.dpi)
            dest = storage.page_image_path(
                pdf_path, page_number, self.image_format, self.output_dir
            )
            try:
                pix.save(str(dest))
            except Exception:
                storage.delete_file(dest)
                raise

        logger.debug(f"Rendered page {page_number} at {self.dpi} DPI: {dest}")
        return str(dest)
