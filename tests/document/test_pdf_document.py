"""
Tests for the PDF document collaborator.
"""

import pytest
from PIL import Image

from pdf_annotator.document.pdf_document import PdfDocument
from pdf_annotator.errors import DocumentLoadError


class TestOpen:
    def test_open_reports_page_count_and_size(self, make_pdf):
        path = make_pdf(pages=3, size=(600, 800))
        with PdfDocument.open(path) as doc:
            assert doc.page_count == 3
            assert doc.page_size(1) == (600.0, 800.0)
            assert doc.file_name == "doc.pdf"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(DocumentLoadError, match="not found"):
            PdfDocument.open(tmp_path / "nope.pdf")

    def test_non_pdf_raises(self, tmp_path):
        path = tmp_path / "fake.pdf"
        path.write_bytes(b"this is not a pdf")
        with pytest.raises(DocumentLoadError):
            PdfDocument.open(path)

    def test_closed_document_raises(self, make_pdf):
        doc = PdfDocument.open(make_pdf())
        doc.close()
        assert doc.closed
        with pytest.raises(DocumentLoadError):
            doc.page_count


class TestRender:
    def test_render_scales_image(self, make_pdf):
        with PdfDocument.open(make_pdf(size=(200, 100))) as doc:
            image = doc.render_page(1, 2.0)
        assert isinstance(image, Image.Image)
        assert image.mode == "RGB"
        assert image.size == (400, 200)

    @pytest.mark.parametrize("page", [0, 4])
    def test_out_of_range_page_raises(self, make_pdf, page):
        with PdfDocument.open(make_pdf(pages=3)) as doc:
            with pytest.raises(DocumentLoadError, match="out of range"):
                doc.render_page(page)

    def test_invalid_scale_raises(self, make_pdf):
        with PdfDocument.open(make_pdf()) as doc:
            with pytest.raises(ValueError):
                doc.render_page(1, 0)
