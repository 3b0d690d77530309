"""
Filesystem Storage Manager
===========================
Manages the transient files of an upload: the uploaded PDF and the page
images rendered for OCR. Nothing here is kept after a request finishes.

Directory Layout:
    uploads/
    ├── raw_pdfs/          # Uploaded PDFs, deleted after processing
    └── pages/             # Rendered page images, deleted after OCR
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)

# Project root: one level up from /paperocr/ package
_PROJECT_ROOT = Path(__file__).parent.parent.absolute()

UPLOADS_DIR = _PROJECT_ROOT / "uploads"
RAW_PDFS_DIR = UPLOADS_DIR / "raw_pdfs"
PAGES_DIR = UPLOADS_DIR / "pages"


def init_storage():
    """Ensure all required directories exist."""
    RAW_PDFS_DIR.mkdir(parents=True, exist_ok=True)
    PAGES_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Storage initialized: {UPLOADS_DIR}")


# ─── Uploads ──────────────────────────────────────────────────────────────────


def save_uploaded_file(file_obj, filename: str, upload_dir: Path = RAW_PDFS_DIR) -> str:
    """
    Save a Flask file upload object under a request-unique name.
    Returns the absolute path to the saved file.
    """
    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    dest = upload_dir / f"{uuid.uuid4().hex}_{_sanitize_name(filename)}"
    file_obj.save(str(dest))
    logger.info(f"Uploaded PDF saved: {dest}")
    return str(dest)


def page_image_path(pdf_path: str, page_number: int, image_format: str = "png",
                    pages_dir: Path = PAGES_DIR) -> Path:
    """Unique path for one rendered page, so parallel uploads never collide."""
    pages_dir = Path(pages_dir)
    pages_dir.mkdir(parents=True, exist_ok=True)
    stem = _sanitize_name(Path(pdf_path).stem)[:50]
    return pages_dir / f"{stem}_p{page_number}_{uuid.uuid4().hex[:8]}.{image_format}"


# ─── Cleanup ──────────────────────────────────────────────────────────────────


def delete_file(path: Union[str, Path]) -> bool:
    """Delete a file if it exists. Returns True if something was removed."""
    p = Path(path)
    if p.exists():
        p.unlink()
        logger.debug(f"Deleted transient file: {p}")
        return True
    return False


@contextmanager
def scoped_file(path: Union[str, Path]) -> Iterator[Path]:
    """
    Yield `path` and delete the file on exit, whether the body succeeded
    or raised.
    """
    p = Path(path)
    try:
        yield p
    finally:
        try:
            delete_file(p)
        except OSError as e:
            logger.warning(f"Could not delete transient file {p}: {e}")


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _sanitize_name(name: str) -> str:
    """Sanitize a name for filesystem use."""
    return "".join(
        c if c.isalnum() or c in "-_. " else "_"
        for c in name
    ).strip().replace(" ", "_")[:100]
