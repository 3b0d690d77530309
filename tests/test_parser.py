"""
Test Suite for Paper Extraction
===============================
Unit tests for segmentation, metadata probes, question tokenization,
assembly and the validity gate. No OCR involved.
"""

from __future__ import annotations

import pytest

from paperocr.assembler import assemble_paper
from paperocr.metadata import (
    MAX_MARKS_PATTERN,
    SUBJECT_CODE_PATTERN,
    extract_metadata,
    probe_examination_label,
    probe_max_marks,
    probe_subject_code,
    probe_subject_name,
)
from paperocr.models import (
    Paper,
    PaperMetadata,
    Question,
    SavedPaper,
    SkippedCandidate,
    SkipReason,
    UploadSummary,
)
from paperocr.segmenter import (
    MIN_PAPER_LENGTH,
    PAPER_ANCHOR_PATTERN,
    build_anchor_pattern,
    find_papers,
)
from paperocr.tokenizer import (
    QUESTION_MARKER_PATTERN,
    find_question_spans,
    tokenize_questions,
)
from paperocr.validator import PaperValidator


HEADER = "G. H. Raisoni College of Engineering, Nagpur"


def make_paper_text(
    code: str = "CSEN3001",
    marks: str = "50",
    season: str = "Winter-2023",
    questions: tuple = ("1)", "2a)", "2b)"),
) -> str:
    """OCR-like text for one paper."""
    lines = [
        HEADER,
        "(An Autonomous Institute affiliated to RTM Nagpur University)",
        f"End Semester Examination: {season}",
        "Design and Analysis",
        "of Algorithms",
        f"Time: 2 Hours [Max. Marks: {marks}]",
        f"Subject Code: {code}",
        "Instructions: All questions are compulsory. Assume suitable data "
        "wherever necessary. Figures to the right indicate full marks.",
    ]
    for marker in questions:
        lines.append(
            f"{marker} Explain question {marker} in detail with a suitable "
            f"example and a neat diagram."
        )
    return "\n".join(lines) + "\n"


# ═══════════════════════════════════════════════════════════════════════════════
# MODEL TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestModels:

    def test_question_defaults(self):
        q = Question(number="1a)", text="Define entropy.")
        assert q.marks is None
        assert q.course_outcome == ""
        assert q.table_data is None
        assert q.image_description == ""

    def test_paper_session_and_count(self):
        paper = Paper(
            subject_code="CSEN3001",
            examination_label="Winter-2023",
            questions=[Question(number="1)", text="A"), Question(number="2)", text="B")],
        )
        assert paper.session == "Winter-2023"
        assert paper.question_count == 2
        data = paper.model_dump()
        assert data["session"] == "Winter-2023"
        assert data["term"] == ""

    def test_metadata_defaults(self):
        meta = PaperMetadata()
        assert meta.subject_code == ""
        assert meta.max_marks == 0

    def test_upload_summary_count(self):
        summary = UploadSummary(
            candidates_found=3,
            saved=[SavedPaper(subject_code="CSEN3001", questions_found=4)],
            skipped=[SkippedCandidate(index=1, reason=SkipReason.NO_QUESTIONS)],
        )
        assert summary.count == 1
        assert summary.model_dump(mode="json")["skipped"][0]["reason"] == "no_questions"


# ═══════════════════════════════════════════════════════════════════════════════
# SEGMENTER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestAnchorPattern:

    def test_header_variants(self):
        assert PAPER_ANCHOR_PATTERN.search("G. H. Raisoni College of Engineering")
        assert PAPER_ANCHOR_PATTERN.search("G.H.Raisoni College of Engineering")
        assert PAPER_ANCHOR_PATTERN.search("GH Raisoni College of Engineering")
        assert PAPER_ANCHOR_PATTERN.search("g. h. RAISONI college of engineering")
        assert PAPER_ANCHOR_PATTERN.search("G H Raisoni College\nof Engineering")

    def test_non_header(self):
        assert not PAPER_ANCHOR_PATTERN.search("Raisoni College of Engineering")
        assert not PAPER_ANCHOR_PATTERN.search("G. H. Raisoni Institute")

    def test_custom_institution(self):
        pattern = build_anchor_pattern(("V", "I", "T"), "Institute of Technology")
        assert pattern.search("V.I.T. Institute of Technology")
        assert pattern.search("VIT Institute of Technology")
        assert not pattern.search(HEADER)


class TestFindPapers:

    def test_no_anchor_yields_nothing(self):
        text = "Some scanned text without any header. " * 30
        assert list(find_papers(text)) == []

    def test_empty_text(self):
        assert list(find_papers("")) == []

    def test_two_papers(self):
        text = make_paper_text() + make_paper_text(code="CSEN3002")
        papers = list(find_papers(text))
        assert len(papers) == 2
        assert "CSEN3001" in papers[0] and "CSEN3002" not in papers[0]
        assert "CSEN3002" in papers[1]

    def test_preamble_dropped(self):
        text = "Scanned by CamScanner\n" + make_paper_text()
        papers = list(find_papers(text))
        assert len(papers) == 1
        assert papers[0].startswith("G. H. Raisoni")

    def test_short_candidate_discarded(self):
        short = HEADER + "\n" + "x" * 80
        assert len(short.strip()) < MIN_PAPER_LENGTH
        assert list(find_papers(short)) == []

    def test_short_candidate_between_real_papers(self):
        text = (
            make_paper_text()
            + HEADER + " mentioned in passing\n"
            + make_paper_text(code="CSEN3002")
        )
        papers = list(find_papers(text))
        assert len(papers) == 2

    def test_threshold_boundary(self):
        at_threshold = HEADER + "x" * (MIN_PAPER_LENGTH - len(HEADER))
        below = HEADER + "x" * (MIN_PAPER_LENGTH - len(HEADER) - 1)
        assert len(list(find_papers(at_threshold))) == 1
        assert list(find_papers(below)) == []

    def test_threshold_uses_trimmed_length(self):
        padded = HEADER + "x" * 100 + " " * 500
        assert list(find_papers(padded)) == []

    def test_custom_min_length(self):
        short = HEADER + "\n" + "x" * 80
        assert len(list(find_papers(short, min_length=50))) == 1


# ═══════════════════════════════════════════════════════════════════════════════
# METADATA TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestMetadataProbes:

    def test_subject_code(self):
        assert probe_subject_code("Subject Code: CSEN3001") == "CSEN3001"
        assert probe_subject_code("Code: CSEN3001/CSEP3002 ") == "CSEN3001/CSEP3002"
        assert probe_subject_code("csen3001") is None
        assert probe_subject_code("CSE301") is None
        assert SUBJECT_CODE_PATTERN.search("ABCD12") is None

    def test_subject_name_collapses_whitespace(self):
        text = (
            "End Semester Examination: Winter-2023\n"
            "Design and   Analysis\nof\n\nAlgorithms\n"
            "Time: 3 Hours"
        )
        assert probe_subject_name(text) == "Design and Analysis of Algorithms"

    def test_subject_name_before_max_marks(self):
        text = (
            "End Semester Examination: Summer - 2024\n"
            "Engineering Mathematics\n[Max. Marks: 70]"
        )
        assert probe_subject_name(text) == "Engineering Mathematics"

    def test_subject_name_without_hyphen_before_year(self):
        text = (
            "End Semester Examination: Winter 2023\n"
            "Operating Systems\n"
            "Time: 3 Hours [Max. Marks: 70]\n"
        )
        assert probe_subject_name(text) == "Operating Systems"
        meta = extract_metadata(text)
        assert meta.examination_label == "Winter 2023"
        assert meta.subject_name == "Operating Systems"

    def test_subject_name_missing(self):
        assert probe_subject_name("Time: 3 Hours") is None

    def test_examination_label(self):
        assert probe_examination_label("Exam: Winter-2023") == "Winter-2023"
        assert probe_examination_label("summer - 2024") == "summer - 2024"
        assert probe_examination_label("Autumn-2023") is None

    def test_max_marks(self):
        assert probe_max_marks("Max. Marks: 50") == 50
        assert probe_max_marks("[Max.Marks:70]") == 70
        assert probe_max_marks("Max. Marks: abc") is None
        assert MAX_MARKS_PATTERN.search("Marks: 50") is None


class TestExtractMetadata:

    def test_full_paper(self):
        meta = extract_metadata(make_paper_text())
        assert meta.subject_code == "CSEN3001"
        assert meta.subject_name == "Design and Analysis of Algorithms"
        assert meta.examination_label == "Winter-2023"
        assert meta.max_marks == 50

    def test_non_numeric_marks_defaults_to_zero(self):
        meta = extract_metadata(make_paper_text(marks="abc"))
        assert meta.max_marks == 0
        assert meta.subject_code == "CSEN3001"
        assert meta.examination_label == "Winter-2023"
        assert meta.subject_name == "Design and Analysis of Algorithms"

    def test_misses_are_independent(self):
        meta = extract_metadata("Max. Marks: 70")
        assert meta == PaperMetadata(max_marks=70)

    def test_nothing_found(self):
        assert extract_metadata("") == PaperMetadata()


# ═══════════════════════════════════════════════════════════════════════════════
# TOKENIZER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestQuestionMarkerPattern:

    def test_markers(self):
        assert QUESTION_MARKER_PATTERN.match("1)").group(1) == "1)"
        assert QUESTION_MARKER_PATTERN.match("2a)").group(1) == "2a)"
        assert QUESTION_MARKER_PATTERN.match("3 b)").group(1) == "3 b)"
        assert QUESTION_MARKER_PATTERN.match("Q. No. 4)").group(1) == "4)"
        assert QUESTION_MARKER_PATTERN.match("Q.No.5a)").group(1) == "5a)"

    def test_non_markers(self):
        assert not QUESTION_MARKER_PATTERN.match("a) option")
        assert not QUESTION_MARKER_PATTERN.match("2A)")
        assert not QUESTION_MARKER_PATTERN.match("Q1 Explain")

    def test_only_at_line_start(self):
        assert not list(QUESTION_MARKER_PATTERN.finditer("see eq 1) here"))
        assert len(list(QUESTION_MARKER_PATTERN.finditer("intro\n1) here"))) == 1


class TestTokenizeQuestions:

    def test_ordered_questions(self):
        text = "1) First\n2a) Second\n2b) Third"
        questions = list(tokenize_questions(text))
        assert [q.number for q in questions] == ["1)", "2a)", "2b)"]
        assert [q.text for q in questions] == ["First", "Second", "Third"]

    def test_body_spans_lines(self):
        text = "1) Explain\nthe theorem.\n2) Next"
        questions = list(tokenize_questions(text))
        assert questions[0].text == "Explain\nthe theorem."

    def test_single_marker_runs_to_end(self):
        text = "Header line\n1) Only question\ncontinues here\nANSWER KEY"
        questions = list(tokenize_questions(text))
        assert len(questions) == 1
        assert questions[0].text == "Only question\ncontinues here\nANSWER KEY"

    def test_empty_body_dropped(self):
        text = "1)\n2) Real question"
        questions = list(tokenize_questions(text))
        assert [q.number for q in questions] == ["2)"]

    def test_trailing_empty_marker_dropped(self):
        questions = list(tokenize_questions("1) Something\n2)   \n"))
        assert [q.number for q in questions] == ["1)"]

    def test_no_markers(self):
        assert list(tokenize_questions("No questions in this text.")) == []

    def test_q_no_prefix(self):
        questions = list(tokenize_questions("Q. No. 1) Define OS.\nQ. No. 2) Define IPC."))
        assert [q.number for q in questions] == ["1)", "2)"]
        assert questions[0].text == "Define OS."

    def test_duplicate_numbers_kept_in_order(self):
        questions = list(tokenize_questions("1) A\n1) B\n1) C"))
        assert [q.text for q in questions] == ["A", "B", "C"]

    def test_extraction_fields_unset(self):
        q = next(tokenize_questions("1) Body"))
        assert q.marks is None
        assert q.course_outcome == ""

    def test_spans_are_monotonic(self):
        text = make_paper_text(questions=("1)", "2)", "3a)", "3b)", "4)"))
        spans = find_question_spans(text)
        assert [s.marker for s in spans] == ["1)", "2)", "3a)", "3b)", "4)"]
        for current, nxt in zip(spans, spans[1:]):
            assert current.start <= current.end <= nxt.start
        assert spans[-1].end == len(text)


# ═══════════════════════════════════════════════════════════════════════════════
# ASSEMBLY + VALIDITY GATE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestAssembler:

    def test_assemble(self):
        paper = assemble_paper(make_paper_text())
        assert paper.subject_code == "CSEN3001"
        assert paper.max_marks == 50
        assert paper.session == "Winter-2023"
        assert [q.number for q in paper.questions] == ["1)", "2a)", "2b)"]
        assert paper.questions[0].text.startswith("Explain question 1)")

    def test_custom_institution(self):
        paper = assemble_paper(make_paper_text(), institution="Other College")
        assert paper.institution == "Other College"

    def test_two_paper_scenario(self):
        text = make_paper_text() + make_paper_text()
        papers = [assemble_paper(c) for c in find_papers(text)]
        assert len(papers) == 2
        for paper in papers:
            assert paper.subject_code == "CSEN3001"
            assert paper.max_marks == 50
            assert [q.number for q in paper.questions] == ["1)", "2a)", "2b)"]

    def test_deterministic(self):
        text = make_paper_text() + make_paper_text(code="CSEN3002")
        first = [assemble_paper(c).model_dump() for c in find_papers(text)]
        second = [assemble_paper(c).model_dump() for c in find_papers(text)]
        assert first == second


class TestPaperValidator:

    def test_valid(self):
        paper = assemble_paper(make_paper_text())
        assert PaperValidator().check(paper) is None
        assert PaperValidator().is_valid(paper)

    def test_missing_subject_code(self):
        paper = Paper(questions=[Question(number="1)", text="A")])
        assert PaperValidator().check(paper) == SkipReason.MISSING_SUBJECT_CODE

    def test_no_questions(self):
        paper = assemble_paper(make_paper_text(questions=()))
        assert paper.subject_code == "CSEN3001"
        assert PaperValidator().check(paper) == SkipReason.NO_QUESTIONS

    def test_report_breakdown(self):
        summary = UploadSummary(
            candidates_found=3,
            saved=[SavedPaper(subject_code="CSEN3001", questions_found=3)],
            skipped=[
                SkippedCandidate(index=1, reason=SkipReason.NO_QUESTIONS),
                SkippedCandidate(index=2, reason=SkipReason.NO_QUESTIONS),
            ],
        )
        assert PaperValidator().report(summary) == {"no_questions": 2}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
