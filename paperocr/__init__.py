"""
Scanned Exam Paper Extraction
=============================
OCR-driven reconstruction of exam papers from scanned PDFs.

Architecture:
    - Page Accumulator: Rasterizes each page and runs Tesseract OCR on it
    - Paper Segmenter: Splits the OCR text on the institution header
    - Metadata Extractor: Probes subject code, name, session and max marks
    - Question Tokenizer: Slices a paper's text on question markers
    - Validity Gate: Keeps papers with a subject code and questions
    - Persistence: Stores papers and questions in SQLite

Version: 1.0.0
"""

__version__ = "1.0.0"
