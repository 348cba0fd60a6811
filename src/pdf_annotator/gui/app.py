"""
Entry point for the PySide6 annotator window.

A minimal host for the geometry engine: a toolbar for file, page, zoom,
draw-mode and margin-preset actions, the page overlay in a scroll area, and
a status bar for session notifications.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QImage, QKeySequence
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QFileDialog,
    QInputDialog,
    QLabel,
    QMainWindow,
    QScrollArea,
    QToolBar,
)

from pdf_annotator import __version__
from pdf_annotator.config import AnnotatorConfig, configure_logging
from pdf_annotator.gui.overlay import PageOverlay
from pdf_annotator.paths import APP_NAME
from pdf_annotator.render.visualizer import save_layout_preview
from pdf_annotator.session import AnnotationSession
from pdf_annotator.storage.save_store import SaveMatches, format_timestamp

logger = logging.getLogger(__name__)

NEW_SAVE_LABEL = "Start a new save"
STATUS_TIMEOUT_MS = 6000


def pil_to_qimage(image) -> QImage:
    """Copy an RGB PIL image into a QImage."""
    rgb = image.convert("RGB")
    data = rgb.tobytes("raw", "RGB")
    qimage = QImage(data, rgb.width, rgb.height, rgb.width * 3, QImage.Format.Format_RGB888)
    return qimage.copy()


class AnnotatorWindow(QMainWindow):
    def __init__(self, session: AnnotationSession):
        super().__init__()
        self.session = session
        self.setWindowTitle(APP_NAME)
        self.resize(1100, 900)

        self.overlay = PageOverlay(session.controller)
        scroll = QScrollArea()
        scroll.setAlignment(Qt.AlignmentFlag.AlignCenter)
        scroll.setWidget(self.overlay)
        self.setCentralWidget(scroll)

        self._page_label = QLabel()
        self._build_toolbar()

        session.notification.connect(self._show_notification)
        session.page_changed.connect(lambda _page: self._render())
        session.scale_changed.connect(lambda _scale: self._render())
        session.document_changed.connect(lambda _doc: self._render())
        self._render()

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Main")
        self.addToolBar(toolbar)

        def action(text, slot, shortcut=None):
            act = QAction(text, self)
            act.triggered.connect(slot)
            if shortcut is not None:
                act.setShortcut(shortcut)
            toolbar.addAction(act)
            return act

        action("Open…", self._choose_file, QKeySequence.StandardKey.Open)
        action("Close", self._close_file)
        toolbar.addSeparator()
        action("◀", lambda: self.session.go_to_page(self.session.current_page - 1), Qt.Key.Key_PageUp)
        toolbar.addWidget(self._page_label)
        action("▶", lambda: self.session.go_to_page(self.session.current_page + 1), Qt.Key.Key_PageDown)
        toolbar.addSeparator()
        action("Zoom −", self.session.zoom_out, QKeySequence.StandardKey.ZoomOut)
        action("100%", self.session.reset_zoom)
        action("Zoom +", self.session.zoom_in, QKeySequence.StandardKey.ZoomIn)
        toolbar.addSeparator()

        self.draw_action = action("Draw", self._toggle_draw)
        self.draw_action.setCheckable(True)
        action("Add area", self.session.controller.add_area)
        action("Delete area", self._delete_edited, QKeySequence.StandardKey.Delete)
        toolbar.addSeparator()

        self.preset_box = QComboBox()
        self.preset_box.addItems(self.session.presets.names())
        self.preset_box.textActivated.connect(self.session.apply_margin_preset)
        toolbar.addWidget(self.preset_box)

    # ─────────────────────────────────────────────────────────────────────────
    # Actions
    # ─────────────────────────────────────────────────────────────────────────

    def open_path(self, path: Path) -> None:
        matches = self.session.open_document(path)
        if matches is not None:
            self._choose_save(matches)

    def _choose_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open PDF", "", "PDF files (*.pdf)")
        if path:
            self.open_path(Path(path))

    def _choose_save(self, matches: SaveMatches) -> None:
        """Offer to resume a save for this file (or any other) or branch a new one."""
        options = {NEW_SAVE_LABEL: None}
        groups = ([matches.exact_match] if matches.exact_match else []) + matches.other_saves
        for group in groups:
            for record in group.saves:
                label = (
                    f"{group.file_name} ({group.page_count} pages) - "
                    f"{format_timestamp(record.updated_at)} [{record.id}]"
                )
                options[label] = record.id
        labels = list(options)
        # Resuming an exact match is the likely intent
        current = 1 if matches.exact_match else 0
        choice, ok = QInputDialog.getItem(self, "Saved sessions", "Resume a save:", labels, current, False)
        save_id = options.get(choice) if ok else None
        if save_id is None:
            self.session.start_new_save()
        else:
            self.session.resume(save_id)

    def _close_file(self) -> None:
        self.session.close_document()

    def _toggle_draw(self, checked: bool) -> None:
        self.session.controller.set_draw_mode(checked)

    def _delete_edited(self) -> None:
        area_id = self.session.controller.editing_area_id
        if area_id is not None:
            self.session.controller.delete_area(area_id)

    def _show_notification(self, message: str, severity: str) -> None:
        self.statusBar().showMessage(f"{severity.upper()}: {message}", STATUS_TIMEOUT_MS)

    def _render(self) -> None:
        document = self.session.document
        if document is None:
            self.overlay.set_page_image(None)
            self._page_label.setText(" - / - ")
            self.setWindowTitle(APP_NAME)
            return
        image = document.render_page(self.session.current_page, self.session.scale)
        self.overlay.set_page_image(pil_to_qimage(image))
        self._page_label.setText(f" {self.session.current_page} / {self.session.page_count} ")
        self.setWindowTitle(f"{document.file_name} - {APP_NAME}")

    def closeEvent(self, event):
        self.session.close_document()
        super().closeEvent(event)


def run(path: Optional[Path] = None, config: Optional[AnnotatorConfig] = None) -> int:
    """
    Main entry point for the GUI application.
    """
    config = config or AnnotatorConfig.from_env()
    configure_logging(config, logging.StreamHandler())

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationDisplayName(APP_NAME)
    app.setApplicationVersion(__version__)

    session = AnnotationSession(config)
    window = AnnotatorWindow(session)
    window.show()
    if path is not None:
        window.open_path(path)
    return app.exec()


def export_preview(path: Path, output: Path, config: AnnotatorConfig) -> int:
    """
    Write the current page of the most recent save for a PDF as an image.

    Returns a process exit code.
    """
    configure_logging(config, logging.StreamHandler())
    session = AnnotationSession(config)
    matches = session.open_document(path)
    if session.load_failed:
        return 1
    if matches is not None and matches.exact_match is not None:
        latest = max(matches.exact_match.saves, key=lambda r: r.updated_at)
        session.resume(latest.id)

    page = session.current_page
    image = session.document.render_page(page, session.scale)
    save_layout_preview(image, session.margin_model.margins, session.layout.areas, output, session.scale)
    session.close_document()
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(prog="pdf-annotator", description="Annotate margins and content areas on PDF pages.")
    parser.add_argument("pdf", nargs="?", type=Path, help="PDF file to open")
    parser.add_argument("--preview", type=Path, metavar="IMAGE", help="Write a layout preview of the PDF and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    overrides = {"level": "debug"} if args.debug else {}
    if args.preview is not None:
        if args.pdf is None:
            parser.error("--preview requires a PDF")
        return export_preview(args.pdf, args.preview, AnnotatorConfig.from_env(**overrides))
    return run(args.pdf, AnnotatorConfig.from_env(**overrides))


if __name__ == "__main__":
    raise SystemExit(main())
