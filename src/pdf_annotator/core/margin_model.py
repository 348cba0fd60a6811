"""
Module: margin_model

Purpose:
    Box-model state for one page's margins and the drag sessions that move
    individual margin lines.

Key Classes:
    - MarginDragSession: Pointer anchor and starting state of one drag
    - MarginModel: Current margins, drag API and change notification

Used By:
    - core.interaction.InteractionController
    - session.AnnotationSession
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from PySide6.QtCore import QObject, Signal

from ..errors import SessionActiveError
from .geometry import DEFAULT_MIN_GAP, resolve_margins, scaled_delta
from .models.margins import DEFAULT_MARGINS, MarginEdge, Margins

logger = logging.getLogger(__name__)

Size = Tuple[float, float]
Point = Tuple[float, float]


@dataclass(frozen=True)
class MarginDragSession:
    """
    State captured when a margin line is grabbed.

    Attributes:
        edge: Margin being dragged
        pointer_start: Client pointer position at grab time
        initial_margins: Margins at grab time
        page_size: Unscaled (width, height) of the page
        scale: Zoom factor of the rendered page at grab time
    """

    edge: MarginEdge
    pointer_start: Point
    initial_margins: Margins
    page_size: Size
    scale: float = 1.0

    def resolve(self, pointer: Point, min_gap: float) -> Margins:
        """Margins for a pointer position, independent of any previous call."""
        axis = 1 if self.edge.is_vertical_axis else 0
        delta = scaled_delta(pointer[axis] - self.pointer_start[axis], self.scale)
        proposed = self.initial_margins.with_value(
            self.edge, self.initial_margins.get(self.edge) + delta
        )
        width, height = self.page_size
        return resolve_margins(proposed, width, height, min_gap, active_edge=self.edge)


class MarginModel(QObject):
    """
    Holds a page's margins and applies margin drags.

    margins_changed fires only when the resolved margins differ from the
    current ones, so repeated pointer events at the same spot do not cause
    redundant re-renders or writes.
    """

    margins_changed = Signal(object)

    def __init__(
        self,
        margins: Margins = DEFAULT_MARGINS,
        min_gap: float = DEFAULT_MIN_GAP,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._margins = margins
        self.min_gap = min_gap
        self.page_size: Size = (0.0, 0.0)
        self.scale = 1.0
        self._session: Optional[MarginDragSession] = None

    @property
    def margins(self) -> Margins:
        return self._margins

    @property
    def session(self) -> Optional[MarginDragSession]:
        return self._session

    # ─────────────────────────────────────────────────────────────────────────
    # Drag API
    # ─────────────────────────────────────────────────────────────────────────

    def begin_drag(
        self,
        edge: MarginEdge,
        pointer_start: Point,
        current_margins: Optional[Margins] = None,
        container_size: Optional[Size] = None,
        scale: Optional[float] = None,
    ) -> MarginDragSession:
        """
        Open a drag session for one margin line.

        Args:
            edge: Margin being grabbed
            pointer_start: Client pointer position
            current_margins: Starting margins (defaults to the model's)
            container_size: Unscaled page size (defaults to page_size)
            scale: Zoom factor (defaults to the model's scale)

        Raises:
            SessionActiveError: If another margin drag is still open
        """
        if self._session is not None:
            raise SessionActiveError(f"Margin drag on {self._session.edge.value} already active")

        self._session = MarginDragSession(
            edge=MarginEdge(edge),
            pointer_start=pointer_start,
            initial_margins=current_margins if current_margins is not None else self._margins,
            page_size=container_size if container_size is not None else self.page_size,
            scale=scale if scale is not None else self.scale,
        )
        logger.debug(f"Margin drag started: {self._session.edge.value}")
        return self._session

    def update_drag(self, session: MarginDragSession, pointer_current: Point) -> Margins:
        """
        Apply a pointer position to a drag session.

        Returns the fully resolved margins; emits margins_changed only if they
        differ from the current margins.
        """
        resolved = session.resolve(pointer_current, self.min_gap)
        self._apply(resolved)
        return resolved

    def end_drag(self, session: MarginDragSession) -> None:
        if self._session is session:
            logger.debug(f"Margin drag ended: {session.edge.value} -> {self._margins}")
            self._session = None

    # ─────────────────────────────────────────────────────────────────────────
    # Direct edits
    # ─────────────────────────────────────────────────────────────────────────

    def set_margins(self, margins: Margins) -> Margins:
        """Replace all margins (preset or typed input), resolved against the page."""
        width, height = self.page_size
        resolved = resolve_margins(margins, width, height, self.min_gap)
        self._apply(resolved)
        return resolved

    def set_edge(self, edge: MarginEdge, value: float) -> Margins:
        """Set one edge from a raw signed value; the edge wins any conflict."""
        edge = MarginEdge(edge)
        width, height = self.page_size
        resolved = resolve_margins(
            self._margins.with_value(edge, value), width, height, self.min_gap, active_edge=edge
        )
        self._apply(resolved)
        return resolved

    def clear(self) -> Margins:
        return self.set_margins(Margins())

    def _apply(self, margins: Margins) -> None:
        if margins == self._margins:
            return
        self._margins = margins
        self.margins_changed.emit(margins)
