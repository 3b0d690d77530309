"""
CLI Interface
=============
Command-line interface for the exam paper extractor.

Usage:
    python -m paperocr.cli extract <pdf_path> [options]
    python -m paperocr.cli parse-text <text_path> [options]
    python -m paperocr.cli papers [options]
    python -m paperocr.cli info <pdf_path>
    python -m paperocr.cli serve [options]
"""

from __future__ import annotations

import json
import os
import sys
from functools import partial
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from . import __version__
from . import database as db
from .engine import ExtractionConfig, ExtractionEngine
from .errors import ExtractionError, NoValidPapersError

console = Console()


def _build_engine(language: str, dpi: int, tesseract_cmd: str,
                  log_level: str, log_file: str) -> ExtractionEngine:
    config = ExtractionConfig(
        dpi=dpi,
        language=language,
        log_level=log_level,
        log_file=log_file,
    )
    if tesseract_cmd:
        config.tesseract_cmd = tesseract_cmd
    return ExtractionEngine(config)


def _fail(message: str, log_level: str = "INFO"):
    console.print(f"[red]Error:[/] {message}")
    if log_level == "DEBUG":
        console.print_exception()
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="paperocr")
def cli():
    """Scanned exam paper extractor: OCR, split and structure question papers."""
    pass


# ─── Shared Options ───────────────────────────────────────────────────────────


def _ocr_options(func):
    func = click.option("--language", "-l", default="eng",
                        help="Tesseract language code")(func)
    func = click.option("--dpi", default=150, type=int,
                        help="Rasterization resolution")(func)
    func = click.option("--tesseract-cmd", default=None,
                        help="Path to the tesseract binary")(func)
    return func


def _output_options(func):
    func = click.option("--save", is_flag=True, default=False,
                        help="Persist valid papers to SQLite")(func)
    func = click.option("--db-path", default=None,
                        help="SQLite database path")(func)
    func = click.option(
        "--log-level",
        default="INFO",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
        help="Logging level",
    )(func)
    func = click.option("--log-file", default=None, help="Path to log file")(func)
    func = click.option(
        "--json-output",
        is_flag=True,
        default=False,
        help="Output only JSON result to stdout (for programmatic use)",
    )(func)
    return func


# ─── Commands ─────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
@_ocr_options
@_output_options
@click.option("--text-out", default=None,
              help="Also write the raw OCR text to this file")
def extract(
    pdf_path: str,
    language: str,
    dpi: int,
    tesseract_cmd: str,
    save: bool,
    db_path: str,
    log_level: str,
    log_file: str,
    json_output: bool,
    text_out: str,
):
    """OCR a scanned PDF and extract its papers."""

    if json_output:
        log_level = "ERROR"

    if not json_output:
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]Exam Paper Extractor v{__version__}[/]\n"
                f"[dim]OCR: {os.path.basename(pdf_path)}[/]",
                border_style="cyan",
            )
        )
        console.print()

    try:
        engine = _build_engine(language, dpi, tesseract_cmd, log_level, log_file)

        if json_output:
            text = engine.extract_text(pdf_path)
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("Running OCR...", total=None)

                def on_page(page: int, total: int):
                    progress.update(task, completed=page, total=total,
                                    description=f"OCR page {page}/{total}")

                text = engine.extract_text(pdf_path, progress_callback=on_page)

        if text_out:
            Path(text_out).write_text(text, encoding="utf-8")

        _handle_text(engine, text, save, db_path, json_output)

    except ExtractionError as e:
        _report_extraction_error(e, json_output)
    except Exception as e:
        _fail(f"Unexpected error: {e}", log_level)


@cli.command("parse-text")
@click.argument("text_path", type=click.Path(exists=True))
@_output_options
def parse_text(
    text_path: str,
    save: bool,
    db_path: str,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Extract papers from already-OCR'd text (no OCR run)."""

    if json_output:
        log_level = "ERROR"

    text = Path(text_path).read_text(encoding="utf-8")

    try:
        engine = ExtractionEngine(ExtractionConfig(
            log_level=log_level,
            log_file=log_file,
        ))
        _handle_text(engine, text, save, db_path, json_output)
    except ExtractionError as e:
        _report_extraction_error(e, json_output)
    except Exception as e:
        _fail(f"Unexpected error: {e}", log_level)


def _handle_text(engine: ExtractionEngine, text: str, save: bool,
                 db_path: str, json_output: bool):
    if save:
        db.init_db(db_path)
        summary = engine.process_text(text, save=partial(db.save_paper, db_path=db_path))
        if json_output:
            print(json.dumps(summary.model_dump(mode="json"), indent=2, ensure_ascii=False))
        else:
            _display_summary(summary)
        return

    papers = engine.parse_text(text)
    if json_output:
        print(json.dumps(
            [p.model_dump(mode="json") for p in papers],
            indent=2,
            ensure_ascii=False,
        ))
    else:
        _display_papers(papers, engine)


def _report_extraction_error(error: ExtractionError, json_output: bool):
    if json_output:
        payload = {"error": str(error)}
        if isinstance(error, NoValidPapersError):
            payload["summary"] = error.summary.model_dump(mode="json")
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        sys.exit(1)
    if isinstance(error, NoValidPapersError):
        _display_summary(error.summary)
    _fail(str(error))


@cli.command()
@click.option("--subject", default=None, help="Filter by subject name")
@click.option("--session", default=None, help="Filter by session, e.g. Winter-2023")
@click.option("--search", default=None, help="Search name, code or exam")
@click.option("--page", default=1, type=int, help="Page number")
@click.option("--limit", default=20, type=int, help="Page size")
@click.option("--db-path", default=None, help="SQLite database path")
def papers(subject: str, session: str, search: str, page: int, limit: int, db_path: str):
    """List saved papers."""
    db.init_db(db_path)
    result = db.list_papers(
        subject=subject, session=session, search=search,
        page=page, limit=limit, db_path=db_path,
    )

    table = Table(title="Saved Papers", border_style="cyan")
    table.add_column("ID", justify="right")
    table.add_column("Code", style="bold")
    table.add_column("Subject")
    table.add_column("Session")
    table.add_column("Max Marks", justify="right")
    table.add_column("Questions", justify="right")

    for p in result["papers"]:
        table.add_row(
            str(p["id"]),
            p["subject_code"],
            p["subject_name"] or "-",
            p["session"] or "-",
            str(p["max_marks"]),
            str(len(p["questions"])),
        )

    console.print()
    console.print(table)
    pg = result["pagination"]
    console.print(f"[dim]Page {pg['current']} of {pg['pages']} — {pg['total']} papers[/]")
    console.print()


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP upload service."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Exam Paper Extraction Service[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
def info(pdf_path: str):
    """Display PDF file information."""

    import fitz

    with fitz.open(pdf_path) as doc:
        table = Table(title="PDF Information", border_style="cyan")
        table.add_column("Property", style="bold")
        table.add_column("Value")

        table.add_row("File", os.path.basename(pdf_path))
        table.add_row("Pages", str(doc.page_count))
        table.add_row(
            "File Size",
            f"{os.path.getsize(pdf_path) / 1024 / 1024:.2f} MB",
        )

        metadata = doc.metadata or {}
        for key in ["title", "author", "subject", "creator", "producer"]:
            val = metadata.get(key, "")
            if val:
                table.add_row(key.title(), val)

        # Scanned papers usually have no text layer
        text_chars = sum(len(page.get_text().strip()) for page in doc)
        table.add_row("Embedded Text", f"{text_chars} chars")

    console.print()
    console.print(table)
    console.print()


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_papers(papers, engine: ExtractionEngine):
    """Display extracted papers, valid or not."""
    console.print()

    if not papers:
        console.print("[yellow]No papers found in the text.[/]")
        console.print()
        return

    table = Table(title="Extracted Papers", border_style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Code", style="bold")
    table.add_column("Subject")
    table.add_column("Exam")
    table.add_column("Max Marks", justify="right")
    table.add_column("Questions", justify="right")
    table.add_column("Status", justify="center")

    for idx, paper in enumerate(papers):
        reason = engine.validator.check(paper)
        status = "[green]✓[/]" if reason is None else f"[yellow]⚠ {reason.value}[/]"
        table.add_row(
            str(idx),
            paper.subject_code or "-",
            paper.subject_name or "-",
            paper.examination_label or "-",
            str(paper.max_marks),
            str(paper.question_count),
            status,
        )

    console.print(table)
    console.print()


def _display_summary(summary):
    """Display the outcome of a saving run."""
    console.print()

    table = Table(title="Upload Summary", border_style="green")
    table.add_column("Paper", style="bold")
    table.add_column("Questions", justify="right")
    table.add_column("Status", justify="center")

    for saved in summary.saved:
        table.add_row(saved.subject_code, str(saved.questions_found), "[green]✓ saved[/]")

    for skipped in summary.skipped:
        table.add_row(
            skipped.subject_code or f"(candidate {skipped.index})",
            "-",
            f"[yellow]⚠ {skipped.reason.value}[/]",
        )

    console.print(table)
    console.print()
    console.print(
        f"[bold]Total:[/] {summary.count} saved of "
        f"{summary.candidates_found} candidate paper(s), "
        f"{len(summary.skipped)} skipped"
    )
    console.print()


# ─── Entry point (for python -m paperocr.cli) ─────────────────────────────────


if __name__ == "__main__":
    cli()
