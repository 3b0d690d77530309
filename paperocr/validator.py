"""
Validation Engine
=================
Validity gate for assembled papers and the post-upload report.

A paper is eligible for persistence only if it has a subject code and at
least one question. Failing papers are skipped, never repaired.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from .models import Paper, SkipReason, UploadSummary

logger = logging.getLogger(__name__)


class PaperValidator:
    """
    Applies the validity gate and logs a summary of each upload.
    """

    def check(self, paper: Paper) -> Optional[SkipReason]:
        """
        Return the reason a paper must be skipped, or None if it is valid.
        """
        if not paper.subject_code:
            return SkipReason.MISSING_SUBJECT_CODE
        if not paper.questions:
            return SkipReason.NO_QUESTIONS
        return None

    def is_valid(self, paper: Paper) -> bool:
        return self.check(paper) is None

    def report(self, summary: UploadSummary) -> dict[str, int]:
        """
        Log the upload summary.

        Returns:
            Skip counts keyed by reason.
        """
        breakdown = dict(Counter(s.reason.value for s in summary.skipped))

        logger.info("=" * 60)
        logger.info("EXTRACTION REPORT")
        logger.info("=" * 60)
        logger.info(f"Candidate Papers Found: {summary.candidates_found}")
        logger.info(f"Papers Saved: {summary.count}")
        for saved in summary.saved:
            logger.info(
                f"  • {saved.subject_code}: {saved.questions_found} questions"
            )
        logger.info(f"Papers Skipped: {len(summary.skipped)}")

        if breakdown:
            logger.info("Skip Breakdown:")
            for reason, count in sorted(breakdown.items()):
                logger.info(f"  • {reason}: {count}")

        logger.info("=" * 60)

        return breakdown
