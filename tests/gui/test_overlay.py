"""Widget tests for the page overlay."""

import pytest
from PySide6.QtCore import QPoint, QPointF, Qt
from PySide6.QtGui import QImage
from PySide6.QtTest import QTest

from pdf_annotator.core.interaction import HitTarget, InteractionController, InteractionState
from pdf_annotator.core.models.margins import MarginEdge
from pdf_annotator.gui.overlay import PageOverlay


@pytest.fixture
def overlay(qtbot):
    controller = InteractionController()
    controller.margin_model.page_size = (400.0, 400.0)
    widget = PageOverlay(controller)
    image = QImage(400, 400, QImage.Format.Format_RGB888)
    image.fill(Qt.GlobalColor.white)
    widget.set_page_image(image)
    qtbot.addWidget(widget)
    widget.show()
    return widget


class TestHitTest:
    def test_canvas(self, overlay):
        assert overlay.hit_test(QPointF(200, 20)).target is HitTarget.CANVAS

    def test_margin_line(self, overlay):
        hit = overlay.hit_test(QPointF(200, 72))
        assert hit.target is HitTarget.MARGIN
        assert hit.edge is MarginEdge.TOP

    def test_area_and_handle(self, overlay):
        area = overlay.controller.layout.add()
        # Default area spans x 80..320, y 80..120 on a 400px page
        assert overlay.hit_test(QPointF(200, 100)).area_id == area.id
        handle_hit = overlay.hit_test(QPointF(320, 120))
        assert handle_hit.target is HitTarget.HANDLE
        assert handle_hit.handle.value == "se"

    def test_inert_areas_are_not_hit(self, overlay):
        other = overlay.controller.layout.add()
        overlay.controller.add_area()
        assert overlay.hit_test(QPointF(200, 100)).area_id != other.id


class TestMouse:
    def test_draw_with_mouse_creates_area(self, overlay):
        overlay.controller.set_draw_mode(True)
        QTest.mousePress(overlay, Qt.MouseButton.LeftButton, pos=QPoint(150, 200))
        QTest.mouseMove(overlay, QPoint(250, 300))
        QTest.mouseRelease(overlay, Qt.MouseButton.LeftButton, pos=QPoint(250, 300))

        areas = overlay.controller.layout.visible()
        assert len(areas) == 1
        assert areas[0].x == pytest.approx(37.5)
        assert areas[0].width == pytest.approx(25.0)
        assert overlay.controller.state is InteractionState.IDLE

    def test_grab_released_after_session(self, overlay):
        overlay.controller.set_draw_mode(True)
        QTest.mousePress(overlay, Qt.MouseButton.LeftButton, pos=QPoint(150, 200))
        assert overlay._grabbed
        QTest.mouseRelease(overlay, Qt.MouseButton.LeftButton, pos=QPoint(160, 210))
        assert not overlay._grabbed

    def test_hide_cancels_session(self, overlay):
        overlay.controller.set_draw_mode(True)
        QTest.mousePress(overlay, Qt.MouseButton.LeftButton, pos=QPoint(150, 200))
        overlay.hide()
        assert not overlay._grabbed
        assert overlay.controller.state is InteractionState.IDLE
        assert overlay.controller.layout.visible() == []

    def test_escape_cancels_and_finishes_editing(self, overlay):
        overlay.controller.add_area()
        QTest.keyClick(overlay, Qt.Key.Key_Escape)
        assert overlay.controller.editing_area_id is None

    def test_double_click_starts_editing(self, overlay):
        area = overlay.controller.layout.add()
        QTest.mouseDClick(overlay, Qt.MouseButton.LeftButton, pos=QPoint(200, 100))
        assert overlay.controller.editing_area_id == area.id

    def test_paint_does_not_fail(self, overlay, qtbot):
        overlay.controller.layout.add()
        overlay.controller.add_area()
        overlay.repaint()
        assert overlay.grab().width() == 400
