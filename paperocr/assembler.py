"""
Paper Assembler
===============
Combines metadata probes and question tokenization into one Paper.
"""

from __future__ import annotations

import logging

from .metadata import extract_metadata
from .models import DEFAULT_INSTITUTION, Paper
from .tokenizer import tokenize_questions

logger = logging.getLogger(__name__)


def assemble_paper(candidate: str, institution: str = DEFAULT_INSTITUTION) -> Paper:
    """
    Build a Paper from one candidate substring.

    No validation or repair happens here; see PaperValidator.check.
    """
    metadata = extract_metadata(candidate)
    questions = list(tokenize_questions(candidate))

    logger.info(
        f"Assembled paper subject_code={metadata.subject_code or '-'} "
        f"exam={metadata.examination_label or '-'} "
        f"questions={len(questions)}"
    )

    return Paper(
        **metadata.model_dump(),
        institution=institution,
        questions=questions,
    )
