"""
Core Models Package

Data models for page margins and content areas.

Margins and ContentArea are frozen dataclasses; changes produce new
instances. PageLayout is the one mutable container and owns the flow-index
invariant for a page.
"""

from .content_area import AreaStatus, AreaType, ContentArea, generate_id
from .margins import DEFAULT_MARGINS, MarginEdge, Margins
from .page_layout import PageLayout

__all__ = [
    "AreaStatus",
    "AreaType",
    "ContentArea",
    "DEFAULT_MARGINS",
    "MarginEdge",
    "Margins",
    "PageLayout",
    "generate_id",
]
