"""
Text Recognizer
===============
Tesseract OCR over rendered page images (pytesseract + Pillow).
"""

from __future__ import annotations

import logging
from typing import Optional

import pytesseract
from PIL import Image

logger = logging.getLogger(__name__)


class TextRecognizer:
    """Converts one page image to plain text."""

    def __init__(self, tesseract_cmd: Optional[str] = None, config: str = ""):
        self.config = config
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image_path: str, language: str = "eng") -> str:
        with Image.open(image_path) as img:
            text = pytesseract.image_to_string(img, lang=language, config=self.config)
        logger.debug(f"Recognized {len(text)} chars from {image_path}")
        return text
