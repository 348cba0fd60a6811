"""
Module: geometry

Purpose:
    Pure coordinate conversions and margin constraint solving. Every function
    is total over numeric input: degenerate containers and scales fall back
    to returning the input rather than raising.

Key Functions:
    - pixel_to_percent / percent_to_pixel: Container-relative conversions
    - scaled_delta: Undo the zoom factor on a raw pointer delta
    - resolve_margins: Sign-clamp margins and keep opposing edges apart
    - bounding_box: Rectangle spanned by two points
    - area_to_pixels: Percent rectangle to rounded pixels

Used By:
    - core.margin_model
    - core.interaction
    - gui.overlay
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .models.margins import MarginEdge, Margins

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]

DEFAULT_MIN_GAP = 20.0


def pixel_to_percent(value_px: float, container_px: float) -> float:
    """
    Convert a pixel length to percent of a container.

    A zero container returns value_px unchanged.

    Example:
        >>> pixel_to_percent(50, 200)
        25.0
    """
    if not container_px:
        return value_px
    return value_px / container_px * 100.0


def percent_to_pixel(value_pct: float, container_px: float) -> float:
    """
    Convert a percent of a container to pixels.

    A zero container returns value_pct unchanged.
    """
    if not container_px:
        return value_pct
    return value_pct / 100.0 * container_px


def scaled_delta(raw_delta: float, zoom_scale: float) -> float:
    """
    Convert an on-screen pointer delta to unscaled page pixels.

    Without this, drag speed would grow with the zoom factor. A non-positive
    scale returns the raw delta.
    """
    if zoom_scale <= 0:
        return raw_delta
    return raw_delta / zoom_scale


def resolve_margins(
    proposed: Margins,
    page_width: float,
    page_height: float,
    min_gap: float = DEFAULT_MIN_GAP,
    active_edge: Optional[MarginEdge] = None,
) -> Margins:
    """
    Clamp margin signs and keep opposing margins at least min_gap apart.

    When a pair overlaps, the edge NOT being dragged is shrunk so the
    actively dragged edge keeps following the pointer. Without an active
    edge in the pair, the bottom/right edge yields.

    A zero-sized page only gets the sign clamp.

    Args:
        proposed: Candidate margins
        page_width: Unscaled page width (px)
        page_height: Unscaled page height (px)
        min_gap: Minimum content size kept between opposing margins
        active_edge: Edge currently being dragged, if any

    Returns:
        Margins satisfying top+|bottom| <= height-min_gap and
        left+|right| <= width-min_gap

    Example:
        >>> m = Margins(top=500, right=0, bottom=-300, left=0)
        >>> resolve_margins(m, 600, 800, 20, MarginEdge.TOP).bottom
        -280.0
    """
    margins = proposed.clamp_signs()
    if page_width <= 0 or page_height <= 0:
        return margins

    for first, second, extent in (
        (MarginEdge.TOP, MarginEdge.BOTTOM, page_height),
        (MarginEdge.LEFT, MarginEdge.RIGHT, page_width),
    ):
        limit = max(0.0, extent - min_gap)
        if margins.inset(first) + margins.inset(second) <= limit:
            continue

        # The active edge wins; the other one is pushed back
        keep, shrink = (second, first) if active_edge is second else (first, second)
        kept = min(margins.inset(keep), limit)
        margins = margins.with_inset(keep, kept).with_inset(shrink, limit - kept)

    return margins


def bounding_box(anchor: Point, point: Point) -> Rect:
    """
    Axis-aligned rectangle spanned by two points as (x, y, width, height).

    Example:
        >>> bounding_box((10, 10), (4, 12))
        (4, 10, 6, 2)
    """
    ax, ay = anchor
    px, py = point
    return (min(ax, px), min(ay, py), abs(px - ax), abs(py - ay))


def area_to_pixels(rect_pct: Rect, width_px: float, height_px: float) -> tuple[int, int, int, int]:
    """Percent rectangle (x, y, w, h) to rounded pixels for display."""
    x, y, w, h = rect_pct
    return (
        round(percent_to_pixel(x, width_px)),
        round(percent_to_pixel(y, height_px)),
        round(percent_to_pixel(w, width_px)),
        round(percent_to_pixel(h, height_px)),
    )
