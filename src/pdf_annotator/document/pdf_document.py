"""
Module: document.pdf_document

Purpose:
    The document-rendering collaborator. Opens a PDF with PyMuPDF and
    reports page count and page sizes, and renders pages to PIL images.

    Page sizes are in unscaled pixels: 1 PDF point == 1 pixel at scale 1.0,
    which is the space margins are stored in.

Key Classes:
    - PdfDocument: Open document handle

Dependencies:
    - fitz (PyMuPDF): PDF parsing and rendering
    - PIL.Image: Rendered page images

Used By:
    - session.AnnotationSession
    - gui.app
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import fitz
from PIL import Image

from ..errors import DocumentLoadError

logger = logging.getLogger(__name__)


class PdfDocument:
    """
    Open PDF document.

    Page numbers are 1-based throughout, matching what the user sees.

    Example:
        >>> with PdfDocument.open("book.pdf") as doc:
        ...     doc.page_count
        ...     doc.page_size(1)
        12
        (612.0, 792.0)
    """

    def __init__(self, path: Path, doc: fitz.Document) -> None:
        self.path = Path(path)
        self._doc: Optional[fitz.Document] = doc

    @classmethod
    def open(cls, path: Path | str) -> PdfDocument:
        """
        Open a PDF file.

        Raises:
            DocumentLoadError: If the file is missing, unreadable, not a PDF
                or has no pages
        """
        path = Path(path)
        if not path.exists():
            raise DocumentLoadError(f"File not found: {path}", path=str(path))
        try:
            doc = fitz.open(path)
        except (RuntimeError, ValueError) as e:
            raise DocumentLoadError(f"Failed to open {path.name}: {e}", path=str(path)) from e

        if not doc.is_pdf or doc.page_count == 0:
            doc.close()
            raise DocumentLoadError(f"{path.name} is not a PDF with pages", path=str(path))

        logger.info(f"Opened {path.name} ({doc.page_count} pages)")
        return cls(path, doc)

    @property
    def file_name(self) -> str:
        return self.path.name

    @property
    def page_count(self) -> int:
        return self._require().page_count

    def page_size(self, page_number: int) -> Tuple[float, float]:
        """Unscaled (width, height) of a page in pixels."""
        rect = self._page(page_number).rect
        return float(rect.width), float(rect.height)

    def render_page(self, page_number: int, scale: float = 1.0) -> Image.Image:
        """
        Render a page to an RGB image.

        Args:
            page_number: 1-based page number
            scale: Zoom factor; the image is page_size * scale pixels

        Raises:
            DocumentLoadError: If the page does not exist
        """
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        page = self._page(page_number)
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        logger.debug(f"Rendered page {page_number} at {scale:.2f}x ({pix.width}x{pix.height})")
        return image

    def close(self) -> None:
        if self._doc is not None:
            self._doc.close()
            self._doc = None

    @property
    def closed(self) -> bool:
        return self._doc is None

    def __enter__(self) -> PdfDocument:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _require(self) -> fitz.Document:
        if self._doc is None:
            raise DocumentLoadError("Document is closed", path=str(self.path))
        return self._doc

    def _page(self, page_number: int) -> fitz.Page:
        doc = self._require()
        if not 1 <= page_number <= doc.page_count:
            raise DocumentLoadError(
                f"Page {page_number} out of range 1..{doc.page_count}", path=str(self.path)
            )
        return doc[page_number - 1]
