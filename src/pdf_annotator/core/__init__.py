"""
PDF Annotator Core Package

The interactive geometry engine: coordinate math, margin and content-area
models, and the pointer state machine. Nothing here renders or persists;
the hosting session wires these pieces to the document and the save store.
"""

from .geometry import bounding_box, percent_to_pixel, pixel_to_percent, resolve_margins, scaled_delta
from .interaction import HitTarget, InteractionController, InteractionState, PointerEvent, ResizeHandle
from .margin_model import MarginDragSession, MarginModel
from .models import AreaStatus, AreaType, ContentArea, MarginEdge, Margins, PageLayout

__all__ = [
    "AreaStatus",
    "AreaType",
    "ContentArea",
    "HitTarget",
    "InteractionController",
    "InteractionState",
    "MarginDragSession",
    "MarginEdge",
    "MarginModel",
    "Margins",
    "PageLayout",
    "PointerEvent",
    "ResizeHandle",
    "bounding_box",
    "percent_to_pixel",
    "pixel_to_percent",
    "resolve_margins",
    "scaled_delta",
]
