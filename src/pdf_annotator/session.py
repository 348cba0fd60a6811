"""
Module: session

Purpose:
    Hosting application state for one open document: the current page and
    zoom, per-page content areas, margins and page metadata, and the save
    record they are persisted to.

    The session owns the geometry engine (MarginModel and
    InteractionController) and connects it to the collaborators: the PDF
    document, the text extractor and the save store. Collaborator failures
    never propagate to the UI as exceptions; they become notification
    signals.

Key Classes:
    - AnnotationSession: Document lifecycle, navigation, tracked persistence

Key Functions:
    - validate_page_metadata(): Form rules for page metadata

Used By:
    - gui.app
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QObject, Signal

from .config import AnnotatorConfig
from .core.interaction import InteractionController, InteractionState
from .core.margin_model import MarginModel
from .core.models.margins import DEFAULT_MARGINS, Margins
from .core.models.page_layout import PageLayout
from .document.extraction import (
    CommandTextExtractor,
    ExtractionResult,
    PdfTextExtractor,
    TextExtractor,
)
from .document.pdf_document import PdfDocument
from .errors import DocumentLoadError, ExtractionError
from .storage.presets import MarginPresetStore
from .storage.save_store import SaveMatches, SaveStore

logger = logging.getLogger(__name__)

PAGE_TYPES = (
    "Title Page",
    "Table of Contents",
    "Chapter Start",
    "Image Page",
    "Map",
    "Data/Table",
    "Index",
    "Appendix",
    "Other",
)
MAX_TAGS = 10


def validate_page_metadata(metadata: Dict[str, Any]) -> List[str]:
    """
    Check page metadata against the form rules.

    Returns:
        Error messages; empty when valid.

    Example:
        >>> validate_page_metadata({"pageType": "Map", "tags": ["coast"]})
        []
        >>> validate_page_metadata({"tags": []})
        ['Page type is required']
    """
    errors = []
    page_type = metadata.get("pageType")
    if not page_type:
        errors.append("Page type is required")
    elif page_type not in PAGE_TYPES:
        errors.append(f"Unknown page type: {page_type}")

    tags = metadata.get("tags", [])
    if not isinstance(tags, list):
        errors.append("Tags must be a list")
    elif len(tags) > MAX_TAGS:
        errors.append(f"Maximum {MAX_TAGS} tags allowed")
    return errors


class AnnotationSession(QObject):
    """
    One annotation session over a PDF document.

    Tracked changes (page, zoom, areas, margins, page metadata) are written
    to the save store with update_save. Changes made during a pointer
    session are written once, when the session ends.

    Signals:
        notification(str, str): User-facing message and severity
            (info|success|warning|error)
        document_changed(object): The open PdfDocument, or None
        page_changed(int): Current page number
        scale_changed(float): Current zoom factor
        extraction_finished(object): ExtractionResult of the last extraction
    """

    notification = Signal(str, str)
    document_changed = Signal(object)
    page_changed = Signal(int)
    scale_changed = Signal(float)
    extraction_finished = Signal(object)

    def __init__(
        self,
        config: Optional[AnnotatorConfig] = None,
        store: Optional[SaveStore] = None,
        extractor: Optional[TextExtractor] = None,
        presets: Optional[MarginPresetStore] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.config = config or AnnotatorConfig.from_env()
        self.store = store or SaveStore(self.config.storage_path)
        self.presets = presets or MarginPresetStore(self.config.presets_path)
        if extractor is not None:
            self.extractor = extractor
        elif self.config.extractor_command:
            self.extractor = CommandTextExtractor(self.config.extractor_command)
        else:
            self.extractor = PdfTextExtractor()

        self.margin_model = MarginModel(min_gap=self.config.min_gap_px, parent=self)
        self.controller = InteractionController(
            margin_model=self.margin_model,
            min_area_percent=self.config.min_area_percent,
            parent=self,
        )
        self.controller.enabled = False

        self.document: Optional[PdfDocument] = None
        self.save_id: Optional[str] = None
        self.load_failed = False
        self.current_page = 1
        self.scale = 1.0
        self.layouts: Dict[int, PageLayout] = {}
        self.page_margins: Dict[int, Margins] = {}
        self.page_metadata: Dict[int, Dict[str, Any]] = {}
        self.last_extraction: Optional[ExtractionResult] = None

        self._restoring = False
        self._dirty: set[str] = set()

        self.controller.areas_changed.connect(self._on_areas_changed)
        self.controller.state_changed.connect(self._on_state_changed)
        self.margin_model.margins_changed.connect(self._on_margins_changed)
        self.store.write_failed.connect(lambda message: self.notification.emit(message, "warning"))

    # ─────────────────────────────────────────────────────────────────────────
    # Document lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def page_count(self) -> int:
        return self.document.page_count if self.document is not None else 0

    @property
    def layout(self) -> PageLayout:
        """Layout of the current page."""
        return self.controller.layout

    def open_document(self, path: Path | str) -> Optional[SaveMatches]:
        """
        Open a PDF and attach it to a save record.

        Returns:
            None when no save exists for any file (a new save is created), or
            when loading failed (load_failed is then True). Otherwise the
            SaveMatches to choose from with resume() or start_new_save().
        """
        self.close_document()
        try:
            document = PdfDocument.open(path)
        except DocumentLoadError as e:
            self.load_failed = True
            logger.warning(f"Document load failed: {e}")
            self.notification.emit(f"Error loading PDF: {e}", "error")
            return None

        self.document = document
        self.load_failed = False
        self.controller.enabled = True
        self._show_page(1)
        self.document_changed.emit(document)

        matches = self.store.find_saves_for_file(document.file_name, document.page_count)
        if matches.has_any:
            return matches

        self.save_id = self.store.create_save(document.file_name, document.page_count)
        self.notification.emit(f"PDF loaded successfully with {document.page_count} pages", "success")
        return None

    def start_new_save(self) -> Optional[str]:
        """Create a fresh save for the open document instead of resuming one."""
        if self.document is None:
            return None
        self.save_id = self.store.create_save(self.document.file_name, self.document.page_count)
        self._persist_all()
        self.notification.emit(f"New save created for {self.document.file_name}", "info")
        return self.save_id

    def resume(self, save_id: str) -> bool:
        """
        Restore a save into the open document.

        Returns False if there is no document or the save does not exist.
        """
        if self.document is None:
            return False
        data = self.store.load_save(save_id)
        if data is None:
            self.notification.emit("Save could not be found", "warning")
            return False

        self._restoring = True
        try:
            self.layouts = {
                int(page): PageLayout.from_list(areas)
                for page, areas in (data.get("contentAreas") or {}).items()
            }
            self.page_margins = {
                int(page): Margins.from_dict(m) for page, m in (data.get("margins") or {}).items()
            }
            self.page_metadata = {
                int(page): dict(meta) for page, meta in (data.get("pageMetadata") or {}).items()
            }
            self.save_id = save_id
            self._set_scale(float(data.get("scale", 1.0)))
            self.current_page = self._clamp_page(int(data.get("currentPage", 1)))
            self._show_page(self.current_page)
        finally:
            self._restoring = False

        self.page_changed.emit(self.current_page)
        logger.info(f"Resumed save {save_id} at page {self.current_page}")
        self.notification.emit("Previous save loaded successfully", "success")
        return True

    def close_document(self) -> None:
        """Close the document and reset all per-document state."""
        self.controller.cancel()
        self.controller.finish_editing()
        document, self.document = self.document, None
        self.save_id = None
        self.load_failed = False
        self.controller.enabled = False
        self.current_page = 1
        self.scale = 1.0
        self.margin_model.scale = 1.0
        self.margin_model.page_size = (0.0, 0.0)
        self._restoring = True
        try:
            self.margin_model.set_margins(DEFAULT_MARGINS)
        finally:
            self._restoring = False
        self.layouts = {}
        self.page_margins = {}
        self.page_metadata = {}
        self.last_extraction = None
        self._dirty.clear()
        self.controller.set_layout(1, PageLayout())
        if document is not None:
            document.close()
            logger.info(f"Closed {document.file_name}")
            self.document_changed.emit(None)

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation and zoom
    # ─────────────────────────────────────────────────────────────────────────

    def go_to_page(self, page_number: int) -> bool:
        """
        Show another page. Refused while an area is being edited.

        The page number is clamped to 1..page_count.
        """
        if not self._ready("go_to_page"):
            return False
        if self.controller.editing_area_id is not None:
            logger.debug("Page change refused while editing an area")
            return False

        page = self._clamp_page(page_number)
        if page == self.current_page:
            return True
        self.current_page = page
        self._show_page(page)
        self._persist(currentPage=page)
        self.page_changed.emit(page)
        return True

    def zoom_in(self) -> float:
        return self._set_scale(self.scale + self.config.zoom_step)

    def zoom_out(self) -> float:
        return self._set_scale(self.scale - self.config.zoom_step)

    def reset_zoom(self) -> float:
        return self._set_scale(1.0)

    def _set_scale(self, value: float) -> float:
        scale = round(min(max(value, self.config.zoom_min), self.config.zoom_max), 2)
        if scale != self.scale:
            self.scale = scale
            self.margin_model.scale = scale
            self._persist(scale=scale)
            self.scale_changed.emit(scale)
        return self.scale

    # ─────────────────────────────────────────────────────────────────────────
    # Margins and page metadata
    # ─────────────────────────────────────────────────────────────────────────

    def set_margins(self, margins: Margins) -> Optional[Margins]:
        """Typed margins for the current page; None when no document is usable."""
        if not self._ready("set_margins"):
            return None
        return self.margin_model.set_margins(margins)

    def apply_margin_preset(self, name: str) -> Optional[Margins]:
        margins = self.presets.get(name)
        if margins is None:
            self.notification.emit(f"Unknown margin preset: {name}", "warning")
            return None
        return self.set_margins(margins)

    def save_page_metadata(self, page_number: int, metadata: Dict[str, Any]) -> bool:
        """
        Store metadata for a page, then extract its text within the margins.

        Args:
            page_number: Page the metadata belongs to
            metadata: ``{"pageType": str, "tags": [str, ...], ...}``

        Returns:
            False if the metadata is invalid or no document is open. An
            extraction failure still returns True; it is reported as an
            error notification and leaves geometry and the save untouched.
        """
        if not self._ready("save_page_metadata"):
            return False
        errors = validate_page_metadata(metadata)
        if errors:
            self.notification.emit("; ".join(errors), "error")
            return False

        self.page_metadata[page_number] = dict(metadata)
        self._persist(pageMetadata=self._page_metadata_payload())

        margins = self.page_margins.get(page_number, self.margin_model.margins)
        try:
            result = self.extractor.extract(self.document.path, page_number, margins)
        except ExtractionError as e:
            logger.warning(f"Extraction failed for page {page_number}: {e}")
            self.notification.emit(f"Error running parser: {e}", "error")
        else:
            self.last_extraction = result
            self.extraction_finished.emit(result)

        self.notification.emit(f"Metadata saved for page {page_number}", "success")
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _ready(self, operation: str) -> bool:
        if self.document is None or self.load_failed:
            logger.info(f"{operation} refused, no document loaded")
            return False
        return True

    def _clamp_page(self, page_number: int) -> int:
        return min(max(1, page_number), max(1, self.page_count))

    def _show_page(self, page: int) -> None:
        """Install the layout and margins of a page into the geometry engine."""
        self.current_page = page
        layout = self.layouts.setdefault(page, PageLayout())
        self.controller.set_layout(page, layout)
        if self.document is not None:
            self.margin_model.page_size = self.document.page_size(page)

        # Pages without their own margins keep the ones currently shown
        margins = self.page_margins.get(page, self.margin_model.margins)
        restoring, self._restoring = self._restoring, True
        try:
            self.margin_model.set_margins(margins)
        finally:
            self._restoring = restoring

    def _on_areas_changed(self, page: int) -> None:
        self._track("contentAreas")

    def _on_margins_changed(self, margins: Margins) -> None:
        if self._restoring:
            return
        self.page_margins[self.current_page] = margins
        self._track("margins")

    def _on_state_changed(self, state: InteractionState) -> None:
        if state is InteractionState.IDLE and self._dirty:
            self._flush()

    def _track(self, key: str) -> None:
        if self._restoring:
            return
        self._dirty.add(key)
        if self.controller.state is InteractionState.IDLE:
            self._flush()

    def _flush(self) -> None:
        partial: Dict[str, Any] = {}
        if "contentAreas" in self._dirty:
            partial["contentAreas"] = {
                str(page): layout.to_list() for page, layout in self.layouts.items() if len(layout)
            }
        if "margins" in self._dirty:
            partial["margins"] = {str(page): m.to_dict() for page, m in self.page_margins.items()}
        self._dirty.clear()
        self._persist(**partial)

    def _page_metadata_payload(self) -> Dict[str, Any]:
        return {str(page): meta for page, meta in self.page_metadata.items()}

    def _persist_all(self) -> None:
        self._dirty.update({"contentAreas", "margins"})
        self._flush()
        self._persist(
            currentPage=self.current_page,
            scale=self.scale,
            pageMetadata=self._page_metadata_payload(),
        )

    def _persist(self, **partial: Any) -> None:
        if self.save_id is None or self._restoring or not partial:
            return
        self.store.update_save(self.save_id, partial)
