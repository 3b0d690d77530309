"""
SQLite Database Layer
=====================
Persistent storage for extracted exam papers.
Each paper row owns its questions; a paper is unique on
(subject_code, session, term).
No in-memory caching — always reads from disk.
"""

from __future__ import annotations

import json
import logging
import math
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from .models import Paper, SaveOutcome

logger = logging.getLogger(__name__)

# Default database path: project_root/papers.sqlite
_DEFAULT_DB_PATH = str(Path(__file__).parent.parent / "papers.sqlite")


def get_db_path() -> str:
    """Return the configured database path."""
    return os.environ.get("PAPERS_DB_PATH", _DEFAULT_DB_PATH)


@contextmanager
def get_connection(db_path: str = None):
    """
    Context manager for database connections.
    Ensures proper commit/rollback and connection cleanup.
    """
    db_path = db_path or get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: str = None):
    """
    Initialize the database schema.
    Safe to call multiple times — uses IF NOT EXISTS.
    """
    db_path = db_path or get_db_path()
    logger.info(f"Initializing database at: {db_path}")

    with get_connection(db_path) as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS papers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                institution TEXT NOT NULL,
                examination_name TEXT DEFAULT '',
                session TEXT NOT NULL DEFAULT '',
                term TEXT NOT NULL DEFAULT '',
                subject_code TEXT NOT NULL,
                subject_name TEXT DEFAULT '',
                max_marks INTEGER DEFAULT 0,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(subject_code, session, term)
            );

            CREATE TABLE IF NOT EXISTS questions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                paper_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                question_number TEXT NOT NULL,
                question_text TEXT NOT NULL,
                marks INTEGER DEFAULT NULL,
                course_outcome TEXT DEFAULT '',
                table_json TEXT DEFAULT NULL,
                image_description TEXT DEFAULT '',
                FOREIGN KEY(paper_id) REFERENCES papers(id) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_questions_paper_id
                ON questions(paper_id, position);
            CREATE INDEX IF NOT EXISTS idx_papers_session
                ON papers(session);
        """)

    logger.info("Database schema initialized successfully")


# ─── Paper Persistence ────────────────────────────────────────────────────────


def _validation_errors(paper: Paper) -> list[str]:
    errors = []
    if not paper.subject_code.strip():
        errors.append("subject_code is required")
    if not paper.questions:
        errors.append("at least one question is required")
    for q in paper.questions:
        if not q.number.strip() or not q.text.strip():
            errors.append(f"question {q.number!r} has an empty number or text")
    return errors


def save_paper(paper: Paper, db_path: str = None) -> SaveOutcome:
    """
    Insert a paper and its questions in one transaction.

    Returns:
        SaveOutcome.SAVED, UNIQUENESS_CONFLICT when the
        (subject_code, session, term) key already exists, or
        VALIDATION_ERROR when required fields are missing or any other
        constraint fails.
    """
    errors = _validation_errors(paper)
    if errors:
        logger.warning(
            f"Rejected paper {paper.subject_code!r}: {'; '.join(errors)}"
        )
        return SaveOutcome.VALIDATION_ERROR

    try:
        with get_connection(db_path) as conn:
            cursor = conn.execute(
                """INSERT INTO papers
                   (institution, examination_name, session, term,
                    subject_code, subject_name, max_marks)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (paper.institution, paper.examination_label, paper.session,
                 paper.term, paper.subject_code, paper.subject_name,
                 paper.max_marks),
            )
            paper_id = cursor.lastrowid

            conn.executemany(
                """INSERT INTO questions
                   (paper_id, position, question_number, question_text,
                    marks, course_outcome, table_json, image_description)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        paper_id,
                        position,
                        q.number,
                        q.text,
                        q.marks,
                        q.course_outcome,
                        json.dumps(q.table_data.model_dump()) if q.table_data else None,
                        q.image_description,
                    )
                    for position, q in enumerate(paper.questions)
                ],
            )
    except sqlite3.IntegrityError as e:
        if "UNIQUE" not in str(e):
            logger.warning(f"Rejected paper {paper.subject_code!r}: {e}")
            return SaveOutcome.VALIDATION_ERROR
        logger.warning(
            f"Paper already exists: subject_code={paper.subject_code!r} "
            f"session={paper.session!r} term={paper.term!r} ({e})"
        )
        return SaveOutcome.UNIQUENESS_CONFLICT

    logger.info(
        f"Inserted paper id={paper_id} subject_code={paper.subject_code!r} "
        f"with {len(paper.questions)} questions"
    )
    return SaveOutcome.SAVED


def _load_questions(conn: sqlite3.Connection, paper_id: int) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM questions WHERE paper_id = ? ORDER BY position",
        (paper_id,),
    ).fetchall()
    questions = []
    for r in rows:
        q = dict(r)
        table_json = q.pop("table_json")
        q["table_data"] = json.loads(table_json) if table_json else None
        questions.append(q)
    return questions


def get_paper(paper_id: int, db_path: str = None) -> Optional[dict]:
    """Fetch a single paper with its questions in source order."""
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM papers WHERE id = ?", (paper_id,)
        ).fetchone()
        if not row:
            return None
        paper = dict(row)
        paper["questions"] = _load_questions(conn, paper_id)
        return paper


def delete_paper(paper_id: int, db_path: str = None) -> bool:
    """Delete a paper and its questions. Returns True if row existed."""
    with get_connection(db_path) as conn:
        cursor = conn.execute("DELETE FROM papers WHERE id = ?", (paper_id,))
        return cursor.rowcount > 0


# ─── Listing ──────────────────────────────────────────────────────────────────


def _pagination(page: int, limit: int, total: int) -> dict:
    return {
        "current": page,
        "pages": math.ceil(total / limit) if limit else 0,
        "total": total,
    }


def list_papers(
    subject: str = None,
    session: str = None,
    search: str = None,
    page: int = 1,
    limit: int = 20,
    db_path: str = None,
) -> dict:
    """
    List papers, newest first.

    Args:
        subject: Case-insensitive substring of the subject name.
        session: Exact session, e.g. "Winter-2023".
        search: Substring of subject name, code or examination name.
        page: 1-indexed page number.
        limit: Page size.
    """
    page = max(1, page)
    limit = max(1, limit)

    where = []
    params: list = []
    if subject and subject != "All":
        where.append("subject_name LIKE ?")
        params.append(f"%{subject}%")
    if session and session != "All":
        where.append("session = ?")
        params.append(session)
    if search:
        where.append(
            "(subject_name LIKE ? OR subject_code LIKE ? OR examination_name LIKE ?)"
        )
        params.extend([f"%{search}%"] * 3)
    where_sql = f"WHERE {' AND '.join(where)}" if where else ""

    with get_connection(db_path) as conn:
        total = conn.execute(
            f"SELECT COUNT(*) AS cnt FROM papers {where_sql}", params
        ).fetchone()["cnt"]
        rows = conn.execute(
            f"""SELECT * FROM papers {where_sql}
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?""",
            params + [limit, (page - 1) * limit],
        ).fetchall()

        papers = []
        for r in rows:
            paper = dict(r)
            paper["questions"] = _load_questions(conn, paper["id"])
            papers.append(paper)

    return {"papers": papers, "pagination": _pagination(page, limit, total)}


def list_questions(
    subject: str = None,
    search: str = None,
    page: int = 1,
    limit: int = 50,
    db_path: str = None,
) -> dict:
    """
    List questions across all papers, most recent session year first.
    Each question carries a summary of its paper.
    """
    page = max(1, page)
    limit = max(1, limit)

    where = []
    params: list = []
    if subject and subject != "All":
        where.append("p.subject_name LIKE ?")
        params.append(f"%{subject}%")
    if search:
        where.append(
            "(q.question_text LIKE ? OR p.subject_name LIKE ? OR p.subject_code LIKE ?)"
        )
        params.extend([f"%{search}%"] * 3)
    where_sql = f"WHERE {' AND '.join(where)}" if where else ""

    base = f"FROM questions q JOIN papers p ON p.id = q.paper_id {where_sql}"

    with get_connection(db_path) as conn:
        total = conn.execute(
            f"SELECT COUNT(*) AS cnt {base}", params
        ).fetchone()["cnt"]
        rows = conn.execute(
            f"""SELECT q.id, q.question_text, q.question_number, q.marks,
                       q.course_outcome, q.image_description,
                       p.id AS paper_id, p.subject_name, p.subject_code,
                       p.session, p.examination_name, p.max_marks,
                       CAST(substr(p.session, -4) AS INTEGER) AS year
                {base}
                ORDER BY year DESC, p.id, q.position
                LIMIT ? OFFSET ?""",
            params + [limit, (page - 1) * limit],
        ).fetchall()

    questions = [
        {
            "id": r["id"],
            "question_text": r["question_text"],
            "question_number": r["question_number"],
            "marks": r["marks"],
            "course_outcome": r["course_outcome"],
            "image_description": r["image_description"],
            "subject": r["subject_name"],
            "subject_code": r["subject_code"],
            "session": r["session"],
            "year": r["year"],
            "paper": {
                "id": r["paper_id"],
                "examination_name": r["examination_name"],
                "max_marks": r["max_marks"],
            },
        }
        for r in rows
    ]
    return {"questions": questions, "pagination": _pagination(page, limit, total)}


# ─── Filter Lookups ───────────────────────────────────────────────────────────


def list_subjects(db_path: str = None) -> list[str]:
    """Distinct non-empty subject names, alphabetical."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            """SELECT DISTINCT subject_name FROM papers
               WHERE subject_name != ''
               ORDER BY subject_name"""
        ).fetchall()
    return [r["subject_name"] for r in rows]


def list_sessions(db_path: str = None) -> list[str]:
    """Distinct non-empty sessions, most recent year first."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            """SELECT DISTINCT session FROM papers
               WHERE session != ''
               ORDER BY CAST(substr(session, -4) AS INTEGER) DESC, session DESC"""
        ).fetchall()
    return [r["session"] for r in rows]
