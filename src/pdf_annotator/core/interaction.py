"""
Module: interaction

Purpose:
    Pointer-driven state machine that turns raw cursor movement over a page
    into validated updates of content areas and margins.

States:
    IDLE -> DRAGGING | RESIZING | DRAWING | MARGIN_DRAGGING -> IDLE

    At most one session is open at a time; a pointer-down while a session is
    open is ignored. Editing is orthogonal: while one area is being edited,
    every other area is inert (no drag/resize) and drawing is disabled.

Coordinates:
    Pointer events carry client pixels. The container rectangle is read
    from a callable on every event because the page can scroll or resize
    mid-drag. Content-area deltas are taken relative to the on-screen
    container, which is in the same zoomed space as the pointer. Margin
    deltas are divided by the zoom scale because margins live in unscaled
    page pixels.

Key Classes:
    - InteractionState, HitTarget, ResizeHandle: Enums of the machine
    - PointerEvent: One pointer sample with what it hit
    - InteractionController: Dispatch and session bookkeeping

Key Functions:
    - apply_resize(): Geometry of a handle drag with per-axis minimums
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from .geometry import Rect, bounding_box, pixel_to_percent
from .margin_model import MarginDragSession, MarginModel
from .models.content_area import ContentArea
from .models.margins import MarginEdge
from .models.page_layout import PageLayout

logger = logging.getLogger(__name__)

DEFAULT_MIN_AREA_PERCENT = 0.5

# Fields the property editor may change on the area being edited
EDITABLE_FIELDS = frozenset({"type", "name", "meta"})

# (left, top, width, height) of the page container in client pixels
ContainerRect = Tuple[float, float, float, float]


class InteractionState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"
    DRAWING = "drawing"
    MARGIN_DRAGGING = "margin_dragging"


class HitTarget(Enum):
    """What a pointer-down landed on."""

    CANVAS = "canvas"
    AREA = "area"
    HANDLE = "handle"
    MARGIN = "margin"


class ResizeHandle(str, Enum):
    """The eight resize handles, named by compass direction."""

    N = "n"
    S = "s"
    E = "e"
    W = "w"
    NE = "ne"
    NW = "nw"
    SE = "se"
    SW = "sw"

    @property
    def moves_left(self) -> bool:
        return "w" in self.value

    @property
    def moves_right(self) -> bool:
        return "e" in self.value

    @property
    def moves_top(self) -> bool:
        return "n" in self.value

    @property
    def moves_bottom(self) -> bool:
        return "s" in self.value


@dataclass(frozen=True)
class PointerEvent:
    """
    One pointer sample.

    Attributes:
        x, y: Client pixel position
        target: What was hit (only meaningful on pointer-down)
        area_id: Hit area for AREA / HANDLE targets
        handle: Hit handle for HANDLE targets
        edge: Hit margin line for MARGIN targets
    """

    x: float
    y: float
    target: HitTarget = HitTarget.CANVAS
    area_id: Optional[str] = None
    handle: Optional[ResizeHandle] = None
    edge: Optional[MarginEdge] = None


@dataclass(frozen=True)
class _AreaSession:
    area_id: str
    pointer_start: Tuple[float, float]
    initial: Rect
    handle: Optional[ResizeHandle] = None


@dataclass(frozen=True)
class _DrawSession:
    anchor: Tuple[float, float]


def apply_resize(
    initial: Rect,
    handle: ResizeHandle,
    dx: float,
    dy: float,
    min_size: float = DEFAULT_MIN_AREA_PERCENT,
) -> dict[str, float]:
    """
    Geometry updates for dragging a resize handle.

    The edges opposite the handle stay anchored. Width and height are clamped
    independently to min_size; a clamped west/north drag pins x/y so the
    anchored edge does not drift.

    Args:
        initial: (x, y, width, height) at grab time, percent
        handle: Handle being dragged
        dx, dy: Pointer delta since grab, percent
        min_size: Per-axis minimum, percent

    Returns:
        Dict of the fields that change (subset of x, y, width, height)

    Example:
        >>> apply_resize((10, 10, 20, 20), ResizeHandle.SE, 5, -30)
        {'width': 25, 'height': 0.5}
    """
    x, y, width, height = initial
    updates: dict[str, float] = {}

    if handle.moves_right:
        updates["width"] = max(min_size, width + dx)
    elif handle.moves_left:
        new_width = max(min_size, width - dx)
        updates["width"] = new_width
        updates["x"] = x + width - new_width

    if handle.moves_bottom:
        updates["height"] = max(min_size, height + dy)
    elif handle.moves_top:
        new_height = max(min_size, height - dy)
        updates["height"] = new_height
        updates["y"] = y + height - new_height

    return updates


class InteractionController(QObject):
    """
    Finite-state machine for pointer interaction over one page.

    The hosting session owns the PageLayout objects and installs the one for
    the current page with set_layout(). All handlers are total: unknown ids,
    a missing container or a zero-sized container make them no-ops.

    Signals:
        areas_changed(int): Areas of the given page changed
        editing_changed(object): Editing area id or None
        hover_changed(object): Hovered area id or None
        preview_changed(object): Draw preview (x, y, w, h) or None
        state_changed(object): New InteractionState
    """

    areas_changed = Signal(int)
    editing_changed = Signal(object)
    hover_changed = Signal(object)
    preview_changed = Signal(object)
    state_changed = Signal(object)

    def __init__(
        self,
        margin_model: Optional[MarginModel] = None,
        container_rect: Optional[Callable[[], Optional[ContainerRect]]] = None,
        min_area_percent: float = DEFAULT_MIN_AREA_PERCENT,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.margin_model = margin_model or MarginModel(parent=self)
        self.container_rect = container_rect
        self.min_area_percent = min_area_percent

        self.page = 1
        self.layout = PageLayout()
        self.draw_mode = False
        self.enabled = True

        self._state = InteractionState.IDLE
        self._session: Any = None
        self._editing_id: Optional[str] = None
        self._hovered_id: Optional[str] = None
        self._preview: Optional[Rect] = None

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def editing_area_id(self) -> Optional[str]:
        return self._editing_id

    @property
    def hovered_area_id(self) -> Optional[str]:
        return self._hovered_id

    @property
    def preview(self) -> Optional[Rect]:
        """Rubber-band rectangle (percent) while drawing."""
        return self._preview

    @property
    def active_area_id(self) -> Optional[str]:
        """Area being dragged or resized, if any."""
        if isinstance(self._session, _AreaSession):
            return self._session.area_id
        return None

    @property
    def active_edge(self) -> Optional[MarginEdge]:
        if isinstance(self._session, MarginDragSession):
            return self._session.edge
        return None

    def set_layout(self, page: int, layout: PageLayout) -> None:
        """Install the layout of the page now shown. Any open session is cancelled."""
        self.cancel()
        self.page = page
        self.layout = layout
        self.set_hovered(None)

    def set_draw_mode(self, enabled: bool) -> None:
        self.draw_mode = bool(enabled)

    def is_inert(self, area_id: str) -> bool:
        """True if another area is being edited, so this one ignores the pointer."""
        return self._editing_id is not None and self._editing_id != area_id

    def _set_state(self, state: InteractionState, session: Any = None) -> None:
        self._session = session
        if state is not self._state:
            self._state = state
            self.state_changed.emit(state)

    # ─────────────────────────────────────────────────────────────────────────
    # Pointer dispatch
    # ─────────────────────────────────────────────────────────────────────────

    def pointer_down(self, event: PointerEvent) -> bool:
        """
        Start a session for a pointer-down.

        Returns True if the event was consumed.
        """
        if not self.enabled:
            return False
        if self._state is not InteractionState.IDLE:
            logger.debug(f"pointer_down ignored, {self._state.value} session open")
            return False

        if event.target is HitTarget.MARGIN and event.edge is not None:
            return self._begin_margin_drag(event)
        if event.target in (HitTarget.AREA, HitTarget.HANDLE) and event.area_id:
            return self._begin_area_session(event)
        return self._canvas_down(event)

    def pointer_move(self, event: PointerEvent) -> bool:
        """Feed a pointer position to the open session."""
        if not self.enabled or self._session is None:
            return False

        if isinstance(self._session, MarginDragSession):
            self.margin_model.update_drag(self._session, (event.x, event.y))
            return True

        rect = self._container()
        if rect is None:
            return False
        left, top, width, height = rect

        if isinstance(self._session, _DrawSession):
            current = (
                pixel_to_percent(event.x - left, width),
                pixel_to_percent(event.y - top, height),
            )
            self._preview = bounding_box(self._session.anchor, current)
            self.preview_changed.emit(self._preview)
            return True

        session: _AreaSession = self._session
        dx = pixel_to_percent(event.x - session.pointer_start[0], width)
        dy = pixel_to_percent(event.y - session.pointer_start[1], height)
        if self._state is InteractionState.DRAGGING:
            updates = {"x": session.initial[0] + dx, "y": session.initial[1] + dy}
        else:
            updates = apply_resize(session.initial, session.handle, dx, dy, self.min_area_percent)
        return self._update(session.area_id, updates)

    def pointer_up(self, event: Optional[PointerEvent] = None) -> Optional[ContentArea]:
        """
        Close the open session.

        Returns the newly created area when a draw session commits, else None.
        """
        session = self._session
        if session is None:
            return None

        created = None
        if isinstance(session, MarginDragSession):
            if event is not None:
                self.margin_model.update_drag(session, (event.x, event.y))
            self.margin_model.end_drag(session)
        elif isinstance(session, _DrawSession):
            created = self._finish_draw(session, event)
        elif event is not None:
            self.pointer_move(event)

        self._set_state(InteractionState.IDLE)
        return created

    def cancel(self) -> None:
        """Close any open session without committing a drawn area."""
        if isinstance(self._session, MarginDragSession):
            self.margin_model.end_drag(self._session)
        if self._preview is not None:
            self._preview = None
            self.preview_changed.emit(None)
        self._set_state(InteractionState.IDLE)

    def double_click(self, area_id: str) -> bool:
        """Double-click on an area starts editing it unless another is edited."""
        if self._editing_id is not None:
            return False
        return self.start_editing(area_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Session starts
    # ─────────────────────────────────────────────────────────────────────────

    def _begin_margin_drag(self, event: PointerEvent) -> bool:
        if self.margin_model.session is not None:
            return False
        session = self.margin_model.begin_drag(event.edge, (event.x, event.y))
        self._set_state(InteractionState.MARGIN_DRAGGING, session)
        return True

    def _begin_area_session(self, event: PointerEvent) -> bool:
        if self.is_inert(event.area_id):
            return False
        area = self.layout.get(event.area_id)
        if area is None or area.deleted:
            logger.debug(f"pointer_down on unknown area {event.area_id}")
            return False

        resizing = event.target is HitTarget.HANDLE and event.handle is not None
        session = _AreaSession(
            area_id=area.id,
            pointer_start=(event.x, event.y),
            initial=(area.x, area.y, area.width, area.height),
            handle=ResizeHandle(event.handle) if resizing else None,
        )
        state = InteractionState.RESIZING if resizing else InteractionState.DRAGGING
        self._set_state(state, session)
        return True

    def _canvas_down(self, event: PointerEvent) -> bool:
        # Clicking empty canvas while editing closes the editor
        if self._editing_id is not None:
            self.finish_editing()
            return True
        if not self.draw_mode:
            return False

        rect = self._container()
        if rect is None:
            return False
        left, top, width, height = rect
        anchor = (
            pixel_to_percent(event.x - left, width),
            pixel_to_percent(event.y - top, height),
        )
        self._preview = (anchor[0], anchor[1], 0.0, 0.0)
        self._set_state(InteractionState.DRAWING, _DrawSession(anchor))
        self.preview_changed.emit(self._preview)
        return True

    def _finish_draw(self, session: _DrawSession, event: Optional[PointerEvent]) -> Optional[ContentArea]:
        rect = self._container() if event is not None else None
        if rect is not None:
            left, top, width, height = rect
            end = (
                pixel_to_percent(event.x - left, width),
                pixel_to_percent(event.y - top, height),
            )
            box = bounding_box(session.anchor, end)
        else:
            box = self._preview

        self._preview = None
        self.preview_changed.emit(None)

        if box is None:
            return None
        x, y, width, height = box
        if width <= self.min_area_percent or height <= self.min_area_percent:
            # Too small to be intentional
            logger.debug(f"Draw discarded: {width:.2f}x{height:.2f}%")
            return None

        area = self.layout.add_drawn(x, y, width, height)
        logger.info(f"Drew {area!r} on page {self.page}")
        self.areas_changed.emit(self.page)
        return area

    def _container(self) -> Optional[ContainerRect]:
        if self.container_rect is None:
            return None
        rect = self.container_rect()
        if rect is None:
            return None
        if rect[2] <= 0 or rect[3] <= 0:
            return None
        return rect

    # ─────────────────────────────────────────────────────────────────────────
    # Area operations
    # ─────────────────────────────────────────────────────────────────────────

    def add_area(self) -> Optional[ContentArea]:
        """Append a default-geometry area and move editing to it."""
        if not self.enabled:
            return None
        self.finish_editing()
        area = self.layout.add()
        logger.info(f"Added {area!r} on page {self.page}")
        self.areas_changed.emit(self.page)
        self.start_editing(area.id)
        return area

    def update_area(self, area_id: str, **changes: Any) -> bool:
        if not self.enabled:
            return False
        return self._update(area_id, changes)

    def delete_area(self, area_id: str) -> bool:
        """Soft-delete an area; exits editing if it was the edited one."""
        if not self.enabled or not self.layout.delete(area_id):
            return False
        logger.info(f"Deleted area {area_id} on page {self.page}")
        if self.active_area_id == area_id:
            self._set_state(InteractionState.IDLE)
        if self._editing_id == area_id:
            self.finish_editing()
        if self._hovered_id == area_id:
            self.set_hovered(None)
        self.areas_changed.emit(self.page)
        return True

    def reorder(self, source_index: int, dest_index: int) -> bool:
        """Move an area within the visible list and re-derive flow indices."""
        if not self.enabled or not self.layout.reorder(source_index, dest_index):
            return False
        self.areas_changed.emit(self.page)
        return True

    def _update(self, area_id: str, changes: dict[str, Any]) -> bool:
        if self.layout.update(area_id, **changes) is None:
            return False
        self.areas_changed.emit(self.page)
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # Editing and hover
    # ─────────────────────────────────────────────────────────────────────────

    def start_editing(self, area_id: str) -> bool:
        if self.is_inert(area_id):
            return False
        area = self.layout.get(area_id)
        if area is None or area.deleted:
            return False
        if self._editing_id != area_id:
            self._editing_id = area_id
            self.editing_changed.emit(area_id)
        return True

    def finish_editing(self) -> None:
        if self._editing_id is not None:
            self._editing_id = None
            self.editing_changed.emit(None)

    def save_edit(self, area_id: str, updates: dict[str, Any]) -> bool:
        """
        Apply property-editor changes to the edited area and close the editor.

        Only type, name and meta can be changed this way.
        """
        if area_id != self._editing_id:
            return False
        allowed = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
        ignored = set(updates) - EDITABLE_FIELDS
        if ignored:
            logger.debug(f"save_edit ignoring fields {sorted(ignored)}")
        if allowed:
            self._update(area_id, allowed)
        self.finish_editing()
        return True

    def set_hovered(self, area_id: Optional[str]) -> None:
        if area_id != self._hovered_id:
            self._hovered_id = area_id
            self.hover_changed.emit(area_id)
