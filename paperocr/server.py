"""
HTTP Microservice
=================
Flask-based HTTP API around the extraction pipeline.

Endpoints:
    POST   /upload-pdf        → OCR a scanned PDF and save its papers
    GET    /papers            → List saved papers (filters + pagination)
    GET    /papers/<id>       → One paper with its questions
    DELETE /papers/<id>       → Delete a paper
    GET    /questions         → Questions across all papers
    GET    /subjects          → Distinct subject names
    GET    /sessions          → Distinct sessions, newest first
    GET    /api/health        → Health check
    GET    /api/info          → Service info
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import __version__
from . import crud
from . import database as db
from . import storage as fs_storage
from .engine import ExtractionConfig
from .errors import (
    InputError,
    NoValidPapersError,
    RecognitionError,
    SegmentationEmptyError,
)

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 100 * 1024 * 1024  # 100MB

app = Flask(__name__)
CORS(app)


def create_app(config: dict = None) -> Flask:
    """Create and configure the Flask app."""
    if config:
        app.config.update(config)

    app.config.setdefault("UPLOAD_DIR", str(fs_storage.RAW_PDFS_DIR))
    app.config.setdefault("DB_PATH", db.get_db_path())
    app.config.setdefault("OCR_LANGUAGE", "eng")
    app.config.setdefault("OCR_DPI", 150)
    # Flask ships the key as None
    if app.config.get("MAX_CONTENT_LENGTH") is None:
        app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES

    Path(app.config["UPLOAD_DIR"]).mkdir(parents=True, exist_ok=True)

    # Initialize persistence layer
    fs_storage.init_storage()
    db.init_db(app.config["DB_PATH"])

    return app


def _extraction_config() -> ExtractionConfig:
    return ExtractionConfig(
        dpi=int(app.config.get("OCR_DPI", 150)),
        language=app.config.get("OCR_LANGUAGE", "eng"),
    )


def _int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


# ─── Health Check ─────────────────────────────────────────────────────────────


@app.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "paperocr",
        "version": __version__,
    })


@app.route("/api/info", methods=["GET"])
def info():
    """Service version and capability info."""
    return jsonify({
        "version": __version__,
        "rasterizer": "PyMuPDF",
        "ocr": "tesseract",
        "capabilities": [
            "page_ocr",
            "paper_segmentation",
            "metadata_extraction",
            "question_tokenization",
        ],
        "supported_formats": ["pdf"],
    })


# ─── Upload ───────────────────────────────────────────────────────────────────


@app.route("/upload-pdf", methods=["POST"])
def upload_pdf():
    """
    OCR a scanned PDF, split it into papers and save the valid ones.

    Expects multipart/form-data with the PDF in the `pdf` field.

    Returns:
        201 {"message", "count", "savedPapers": [{subject_code, questions_found}]}
    """
    file = request.files.get("pdf")
    if file is None or not file.filename:
        return jsonify({"error": "No file uploaded."}), 400

    pdf_path = fs_storage.save_uploaded_file(
        file, file.filename, upload_dir=app.config["UPLOAD_DIR"]
    )

    try:
        summary = crud.upload_and_extract(
            pdf_path,
            original_filename=file.filename,
            config=_extraction_config(),
            db_path=app.config["DB_PATH"],
        )
    except InputError as e:
        return jsonify({"error": str(e)}), 400
    except SegmentationEmptyError as e:
        return jsonify({"error": str(e)}), 400
    except NoValidPapersError as e:
        return jsonify({
            "message": str(e),
            "skipped": [s.model_dump(mode="json") for s in e.summary.skipped],
        }), 400
    except RecognitionError as e:
        logger.error(f"Upload failed: {e}")
        return jsonify({"error": "Failed to process the scanned PDF file."}), 500
    except Exception as e:
        logger.error(f"Upload failed: {e}", exc_info=True)
        return jsonify({"error": "Failed to process the scanned PDF file."}), 500
    finally:
        fs_storage.delete_file(pdf_path)

    return jsonify({
        "message": "PDF processed and papers saved successfully.",
        "count": summary.count,
        "savedPapers": [s.model_dump() for s in summary.saved],
        "skipped": [s.model_dump(mode="json") for s in summary.skipped],
    }), 201


# ─── Papers & Questions ──────────────────────────────────────────────────────


@app.route("/papers", methods=["GET"])
def list_papers():
    """List papers with optional subject / session / search filters."""
    result = db.list_papers(
        subject=request.args.get("subject"),
        session=request.args.get("session"),
        search=request.args.get("search"),
        page=_int_arg("page", 1),
        limit=_int_arg("limit", 20),
        db_path=app.config["DB_PATH"],
    )
    return jsonify(result)


@app.route("/papers/<int:paper_id>", methods=["GET"])
def get_paper(paper_id: int):
    paper = db.get_paper(paper_id, db_path=app.config["DB_PATH"])
    if not paper:
        return jsonify({"error": "Paper not found"}), 404
    return jsonify(paper)


@app.route("/papers/<int:paper_id>", methods=["DELETE"])
def delete_paper(paper_id: int):
    if not db.delete_paper(paper_id, db_path=app.config["DB_PATH"]):
        return jsonify({"error": "Paper not found"}), 404
    return jsonify({"success": True})


@app.route("/questions", methods=["GET"])
def list_questions():
    """Flattened questions across papers."""
    result = db.list_questions(
        subject=request.args.get("subject"),
        search=request.args.get("search"),
        page=_int_arg("page", 1),
        limit=_int_arg("limit", 50),
        db_path=app.config["DB_PATH"],
    )
    return jsonify(result)


@app.route("/subjects", methods=["GET"])
def list_subjects():
    """Subject names for the /papers subject filter."""
    return jsonify(db.list_subjects(db_path=app.config["DB_PATH"]))


@app.route("/sessions", methods=["GET"])
def list_sessions():
    """Sessions for the /papers session filter."""
    return jsonify(db.list_sessions(db_path=app.config["DB_PATH"]))


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
):
    """Start the microservice server."""
    create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
