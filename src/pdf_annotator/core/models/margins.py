"""
Module: margins

Purpose:
    Provides the Margins dataclass - the four page-edge offsets that define
    the content-safe box of a page, in unscaled (scale=1.0) page pixels.

Sign convention (the ONLY place it is defined):
    - top, left: >= 0, measured inward from their edge
    - right, bottom: <= 0, stored negative, measured inward from their edge

    Code outside this module and core.geometry must go through
    MarginEdge.sign, Margins.inset() and Margins.with_inset() instead of
    negating values itself.

Key Classes:
    - MarginEdge: The four edges, with their axis and sign
    - Margins: Immutable margin set

Used By:
    - core.geometry.resolve_margins
    - core.margin_model.MarginModel
    - document.extraction
    - storage.presets
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping


class MarginEdge(str, Enum):
    """A page edge that carries a margin."""

    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"

    @property
    def sign(self) -> int:
        """+1 for edges stored positive, -1 for edges stored negative."""
        return 1 if self in (MarginEdge.TOP, MarginEdge.LEFT) else -1

    @property
    def is_vertical_axis(self) -> bool:
        """True for top/bottom, whose values move along the y axis."""
        return self in (MarginEdge.TOP, MarginEdge.BOTTOM)

    @property
    def opposite(self) -> MarginEdge:
        return _OPPOSITES[self]


_OPPOSITES = {
    MarginEdge.TOP: MarginEdge.BOTTOM,
    MarginEdge.BOTTOM: MarginEdge.TOP,
    MarginEdge.LEFT: MarginEdge.RIGHT,
    MarginEdge.RIGHT: MarginEdge.LEFT,
}


@dataclass(frozen=True, slots=True)
class Margins:
    """
    Signed margin offsets in unscaled page pixels.

    Attributes:
        top: Offset of the top line from the top edge (>= 0)
        right: Offset of the right line from the right edge (<= 0)
        bottom: Offset of the bottom line from the bottom edge (<= 0)
        left: Offset of the left line from the left edge (>= 0)

    Example:
        >>> m = Margins(top=72, right=-72, bottom=-72, left=72)
        >>> m.inset(MarginEdge.RIGHT)
        72
        >>> m.with_inset(MarginEdge.BOTTOM, 10).bottom
        -10
    """

    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    # ─────────────────────────────────────────────────────────────────────────
    # Edge access
    # ─────────────────────────────────────────────────────────────────────────

    def get(self, edge: MarginEdge) -> float:
        """Raw signed value of an edge."""
        return getattr(self, edge.value)

    def with_value(self, edge: MarginEdge, value: float) -> Margins:
        """Copy with one edge's raw signed value replaced."""
        return replace(self, **{edge.value: value})

    def inset(self, edge: MarginEdge) -> float:
        """Distance of the margin line from its page edge (always >= 0 when valid)."""
        return self.get(edge) * edge.sign

    def with_inset(self, edge: MarginEdge, distance: float) -> Margins:
        """Copy with an edge set from an inward distance."""
        return self.with_value(edge, distance * edge.sign)

    def clamp_signs(self) -> Margins:
        """Force every edge onto its allowed side of zero."""
        return Margins(
            top=max(0.0, self.top),
            right=min(0.0, self.right),
            bottom=min(0.0, self.bottom),
            left=max(0.0, self.left),
        )

    @property
    def vertical_span(self) -> float:
        """top + |bottom|: page height consumed by margins."""
        return self.inset(MarginEdge.TOP) + self.inset(MarginEdge.BOTTOM)

    @property
    def horizontal_span(self) -> float:
        """left + |right|: page width consumed by margins."""
        return self.inset(MarginEdge.LEFT) + self.inset(MarginEdge.RIGHT)

    def content_box(self, page_width: float, page_height: float) -> tuple[float, float, float, float]:
        """
        Content-safe rectangle as (x0, y0, x1, y1) in page pixels.

        Args:
            page_width: Unscaled page width
            page_height: Unscaled page height
        """
        return (
            self.inset(MarginEdge.LEFT),
            self.inset(MarginEdge.TOP),
            page_width - self.inset(MarginEdge.RIGHT),
            page_height - self.inset(MarginEdge.BOTTOM),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, float]:
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Margins:
        """Deserialize, tolerating missing edges (treated as 0)."""
        return cls(
            top=float(data.get("top", 0) or 0),
            right=float(data.get("right", 0) or 0),
            bottom=float(data.get("bottom", 0) or 0),
            left=float(data.get("left", 0) or 0),
        )

    @classmethod
    def uniform(cls, distance: float) -> Margins:
        """Same inward distance on every edge."""
        m = cls()
        for edge in MarginEdge:
            m = m.with_inset(edge, distance)
        return m


# 1 inch at 72 px per inch
DEFAULT_MARGINS = Margins.uniform(72.0)
NO_MARGINS = Margins()
