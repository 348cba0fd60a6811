"""
Tests for text extraction collaborators.
"""

import sys

import pytest

from pdf_annotator.core.models.margins import Margins
from pdf_annotator.document.extraction import (
    CommandTextExtractor,
    PdfTextExtractor,
    format_margin_arg,
)
from pdf_annotator.errors import ExtractionError


class TestFormatMarginArg:
    def test_order_is_left_top_right_bottom(self):
        assert format_margin_arg(Margins(top=72, right=-72, bottom=-36, left=144)) == "144,72,-72,-36"

    def test_fractions_kept(self):
        assert format_margin_arg(Margins(top=10.5, right=0, bottom=0, left=0)) == "0,10.5,0,0"


class TestPdfTextExtractor:
    def test_text_inside_margins_is_extracted(self, make_pdf):
        path = make_pdf(pages=2, texts=["Alpha inside", "Beta"])
        result = PdfTextExtractor().extract(path, 1, Margins(top=50, right=-50, bottom=-50, left=50))
        assert "Alpha inside" in result.text
        assert result.page_number == 1
        assert result.margins_arg == "50,50,-50,-50"

    def test_text_outside_margins_is_excluded(self, make_pdf):
        # Text baseline sits at y=100; a 200px top margin cuts it off
        path = make_pdf(pages=1, texts=["Hidden header"])
        result = PdfTextExtractor().extract(path, 1, Margins(top=200, right=0, bottom=0, left=0))
        assert "Hidden header" not in result.text

    def test_bad_page_raises(self, make_pdf):
        with pytest.raises(ExtractionError):
            PdfTextExtractor().extract(make_pdf(pages=1), 5, Margins())


class TestCommandTextExtractor:
    def test_builds_parser_arguments(self):
        extractor = CommandTextExtractor("run-parser.sh --json")
        args = extractor.build_args("/tmp/doc.pdf", 3, Margins(top=1, right=-2, bottom=-3, left=4))
        assert args == ["run-parser.sh", "--json", "/tmp/doc.pdf", "-p", "3", "-m", "4,1,-2,-3"]

    def test_stdout_becomes_text(self):
        script = "import sys; print(' '.join(sys.argv[1:]))"
        extractor = CommandTextExtractor([sys.executable, "-c", script])
        result = extractor.extract("doc.pdf", 2, Margins(top=72, right=-72, bottom=-72, left=72))
        assert result.text.strip() == "doc.pdf -p 2 -m 72,72,-72,-72"
        assert result.margins_arg == "72,72,-72,-72"

    def test_non_zero_exit_raises(self):
        extractor = CommandTextExtractor([sys.executable, "-c", "import sys; sys.exit(3)"])
        with pytest.raises(ExtractionError, match="status 3"):
            extractor.extract("doc.pdf", 1, Margins())

    def test_missing_executable_raises(self, tmp_path):
        extractor = CommandTextExtractor([str(tmp_path / "no-such-parser")])
        with pytest.raises(ExtractionError):
            extractor.extract("doc.pdf", 1, Margins())

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            CommandTextExtractor([])
