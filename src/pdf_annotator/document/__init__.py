"""
Document Package

PDF collaborators consumed by the annotation session: page rendering and
text extraction.
"""

from .extraction import (
    CommandTextExtractor,
    ExtractionResult,
    PdfTextExtractor,
    TextExtractor,
    format_margin_arg,
)
from .pdf_document import PdfDocument

__all__ = [
    "CommandTextExtractor",
    "ExtractionResult",
    "PdfDocument",
    "PdfTextExtractor",
    "TextExtractor",
    "format_margin_arg",
]
