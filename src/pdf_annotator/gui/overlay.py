"""
Page Overlay Widget.

Paints a rendered page with its margin lines, content areas, resize handles
and the draw preview, and turns Qt mouse events into PointerEvents for the
InteractionController.

The mouse is grabbed for the lifetime of a pointer session, so a drag that
leaves the widget keeps receiving moves and the release. The grab is always
released when the session ends, on cancel, and when the widget is hidden
or closed.
"""
import logging
from typing import Optional, Tuple

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QImage, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from pdf_annotator.core.geometry import percent_to_pixel
from pdf_annotator.core.interaction import (
    HitTarget,
    InteractionController,
    InteractionState,
    PointerEvent,
    ResizeHandle,
)
from pdf_annotator.core.models.content_area import ContentArea
from pdf_annotator.core.models.margins import MarginEdge

logger = logging.getLogger(__name__)

HANDLE_SIZE = 8.0
MARGIN_GRAB_PX = 4.0

MARGIN_COLOR = QColor(220, 0, 0)
AREA_COLOR = QColor(25, 118, 210)
EDIT_COLOR = QColor(255, 143, 0)
PREVIEW_COLOR = QColor(46, 125, 50)


class PageOverlay(QWidget):
    """
    Interactive page canvas.

    The container rectangle handed to the controller is the widget's own
    rect, and Qt event positions are already widget-local.
    """

    def __init__(self, controller: InteractionController, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.controller = controller
        self.controller.container_rect = self.container_rect
        self._pixmap: Optional[QPixmap] = None
        self._grabbed = False
        self.show_margins = True

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        controller.areas_changed.connect(lambda _page: self.update())
        controller.editing_changed.connect(lambda _id: self.update())
        controller.hover_changed.connect(lambda _id: self.update())
        controller.preview_changed.connect(lambda _rect: self.update())
        controller.margin_model.margins_changed.connect(lambda _m: self.update())

    # ─────────────────────────────────────────────────────────────────────────
    # Page image
    # ─────────────────────────────────────────────────────────────────────────

    def set_page_image(self, image: Optional[QImage]) -> None:
        """Show a rendered page; the widget takes the image's size."""
        if image is None:
            self._pixmap = None
            self.setFixedSize(0, 0)
        else:
            self._pixmap = QPixmap.fromImage(image)
            self.setFixedSize(self._pixmap.size())
        self.update()

    def container_rect(self) -> Optional[Tuple[float, float, float, float]]:
        if self._pixmap is None:
            return None
        return (0.0, 0.0, float(self.width()), float(self.height()))

    # ─────────────────────────────────────────────────────────────────────────
    # Geometry helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _area_rect(self, area: ContentArea) -> QRectF:
        w, h = self.width(), self.height()
        return QRectF(
            percent_to_pixel(area.x, w),
            percent_to_pixel(area.y, h),
            percent_to_pixel(area.width, w),
            percent_to_pixel(area.height, h),
        )

    def _margin_lines(self) -> dict:
        """Screen position of each margin line (x for left/right, y for top/bottom)."""
        model = self.controller.margin_model
        page_w, page_h = model.page_size
        scale = model.scale if model.scale > 0 else 1.0
        x0, y0, x1, y1 = model.margins.content_box(page_w, page_h)
        return {
            MarginEdge.LEFT: x0 * scale,
            MarginEdge.TOP: y0 * scale,
            MarginEdge.RIGHT: x1 * scale,
            MarginEdge.BOTTOM: y1 * scale,
        }

    @staticmethod
    def _handle_rects(rect: QRectF) -> dict:
        half = HANDLE_SIZE / 2
        cx, cy = rect.center().x(), rect.center().y()
        points = {
            ResizeHandle.NW: (rect.left(), rect.top()),
            ResizeHandle.N: (cx, rect.top()),
            ResizeHandle.NE: (rect.right(), rect.top()),
            ResizeHandle.E: (rect.right(), cy),
            ResizeHandle.SE: (rect.right(), rect.bottom()),
            ResizeHandle.S: (cx, rect.bottom()),
            ResizeHandle.SW: (rect.left(), rect.bottom()),
            ResizeHandle.W: (rect.left(), cy),
        }
        return {
            handle: QRectF(x - half, y - half, HANDLE_SIZE, HANDLE_SIZE)
            for handle, (x, y) in points.items()
        }

    def hit_test(self, pos: QPointF) -> PointerEvent:
        """Classify a widget position as handle, margin line, area or canvas."""
        x, y = pos.x(), pos.y()
        # Topmost area first (highest flow index is painted last)
        areas = [a for a in reversed(self.controller.layout.visible()) if not self.controller.is_inert(a.id)]

        for area in areas:
            for handle, rect in self._handle_rects(self._area_rect(area)).items():
                if rect.contains(pos):
                    return PointerEvent(x, y, HitTarget.HANDLE, area_id=area.id, handle=handle)

        if self.show_margins and self.controller.editing_area_id is None:
            for edge, line in self._margin_lines().items():
                coord = y if edge.is_vertical_axis else x
                if abs(coord - line) <= MARGIN_GRAB_PX:
                    return PointerEvent(x, y, HitTarget.MARGIN, edge=edge)

        for area in areas:
            if self._area_rect(area).contains(pos):
                return PointerEvent(x, y, HitTarget.AREA, area_id=area.id)

        return PointerEvent(x, y, HitTarget.CANVAS)

    # ─────────────────────────────────────────────────────────────────────────
    # Mouse grab
    # ─────────────────────────────────────────────────────────────────────────

    def _acquire_grab(self) -> None:
        if not self._grabbed:
            self.grabMouse()
            self._grabbed = True

    def _release_grab(self) -> None:
        if self._grabbed:
            self.releaseMouse()
            self._grabbed = False

    def cancel_interaction(self) -> None:
        self.controller.cancel()
        self._release_grab()

    # ─────────────────────────────────────────────────────────────────────────
    # Qt events
    # ─────────────────────────────────────────────────────────────────────────

    def mousePressEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        consumed = self.controller.pointer_down(self.hit_test(event.position()))
        if consumed and self.controller.state is not InteractionState.IDLE:
            self._acquire_grab()
        event.accept()

    def mouseMoveEvent(self, event):
        pos = event.position()
        if self.controller.state is not InteractionState.IDLE:
            self.controller.pointer_move(PointerEvent(pos.x(), pos.y()))
            return
        hit = self.hit_test(pos)
        self.controller.set_hovered(hit.area_id)
        if hit.target is HitTarget.MARGIN:
            vertical = hit.edge.is_vertical_axis
            self.setCursor(Qt.CursorShape.SizeVerCursor if vertical else Qt.CursorShape.SizeHorCursor)
        elif hit.target is HitTarget.HANDLE:
            self.setCursor(Qt.CursorShape.SizeAllCursor)
        elif self.controller.draw_mode and hit.target is HitTarget.CANVAS:
            self.setCursor(Qt.CursorShape.CrossCursor)
        else:
            self.unsetCursor()

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return
        pos = event.position()
        try:
            self.controller.pointer_up(PointerEvent(pos.x(), pos.y()))
        finally:
            self._release_grab()

    def mouseDoubleClickEvent(self, event):
        hit = self.hit_test(event.position())
        if hit.area_id is not None:
            self.controller.double_click(hit.area_id)

    def leaveEvent(self, event):
        if self.controller.state is InteractionState.IDLE:
            self.controller.set_hovered(None)
        super().leaveEvent(event)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape:
            self.cancel_interaction()
            self.controller.finish_editing()
            return
        super().keyPressEvent(event)

    def hideEvent(self, event):
        self.cancel_interaction()
        super().hideEvent(event)

    def closeEvent(self, event):
        self.cancel_interaction()
        super().closeEvent(event)

    # ─────────────────────────────────────────────────────────────────────────
    # Painting
    # ─────────────────────────────────────────────────────────────────────────

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        if self._pixmap is not None:
            painter.drawPixmap(0, 0, self._pixmap)

        if self.show_margins:
            self._paint_margins(painter)

        editing_id = self.controller.editing_area_id
        hovered_id = self.controller.hovered_area_id
        font = QFont()
        font.setPointSize(9)
        painter.setFont(font)

        for area in self.controller.layout.visible():
            rect = self._area_rect(area)
            inert = self.controller.is_inert(area.id)
            color = QColor(EDIT_COLOR if area.id == editing_id else AREA_COLOR)
            color.setAlpha(70 if inert else 255)
            fill = QColor(color)
            fill.setAlpha(15 if inert else 40)

            painter.setPen(QPen(color, 2 if area.id == editing_id else 1))
            painter.setBrush(fill)
            painter.drawRect(rect)
            painter.drawText(rect.adjusted(4, 2, -4, -2), Qt.AlignmentFlag.AlignLeft, f"{area.index + 1}. {area.name}")

            if not inert and area.id in (editing_id, hovered_id):
                painter.setBrush(color)
                for handle_rect in self._handle_rects(rect).values():
                    painter.drawRect(handle_rect)

        preview = self.controller.preview
        if preview is not None:
            x, y, w, h = preview
            pen = QPen(PREVIEW_COLOR, 1, Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRect(QRectF(
                percent_to_pixel(x, self.width()),
                percent_to_pixel(y, self.height()),
                percent_to_pixel(w, self.width()),
                percent_to_pixel(h, self.height()),
            ))
        painter.end()

    def _paint_margins(self, painter: QPainter) -> None:
        lines = self._margin_lines()
        active = self.controller.active_edge
        for edge, pos in lines.items():
            painter.setPen(QPen(MARGIN_COLOR, 2 if edge is active else 1))
            if edge.is_vertical_axis:
                painter.drawLine(QPointF(0, pos), QPointF(self.width(), pos))
            else:
                painter.drawLine(QPointF(pos, 0), QPointF(pos, self.height()))
