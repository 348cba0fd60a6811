"""
Tests for the hosting annotation session.
"""

import pytest

from pdf_annotator.config import AnnotatorConfig
from pdf_annotator.core.interaction import HitTarget, PointerEvent
from pdf_annotator.core.models.margins import DEFAULT_MARGINS, MarginEdge, Margins
from pdf_annotator.document.extraction import ExtractionResult, format_margin_arg
from pdf_annotator.errors import ExtractionError
from pdf_annotator.session import AnnotationSession, validate_page_metadata
from pdf_annotator.storage.save_store import SaveStore


class FakeExtractor:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def extract(self, document_path, page_number, margins):
        self.calls.append((document_path, page_number, margins))
        if self.fail:
            raise ExtractionError("parser crashed", page_number=page_number)
        return ExtractionResult(page_number, "text", format_margin_arg(margins))


@pytest.fixture
def config(tmp_path) -> AnnotatorConfig:
    return AnnotatorConfig(
        storage_path=tmp_path / "saves.json",
        presets_path=tmp_path / "presets.json",
    )


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def session(config, extractor) -> AnnotationSession:
    session = AnnotationSession(config, extractor=extractor)
    session.controller.container_rect = lambda: (0.0, 0.0, 1000.0, 1000.0)
    return session


@pytest.fixture
def notifications(session):
    seen = []
    session.notification.connect(lambda message, severity: seen.append((message, severity)))
    return seen


class TestOpenDocument:
    def test_first_open_creates_save(self, session, make_pdf, notifications):
        assert session.open_document(make_pdf(pages=4)) is None
        assert session.save_id is not None
        assert session.page_count == 4
        assert session.current_page == 1
        assert ("PDF loaded successfully with 4 pages", "success") in notifications

    def test_second_open_offers_existing_saves(self, session, make_pdf):
        path = make_pdf(pages=4)
        session.open_document(path)
        first_save = session.save_id
        matches = session.open_document(path)
        assert matches is not None
        assert [r.id for r in matches.exact_match.saves] == [first_save]
        assert session.save_id is None

    def test_load_failure_refuses_geometry(self, session, tmp_path, notifications):
        bad = tmp_path / "broken.pdf"
        bad.write_bytes(b"garbage")
        assert session.open_document(bad) is None
        assert session.load_failed
        assert notifications[-1][1] == "error"
        assert not session.go_to_page(2)
        assert session.controller.add_area() is None
        assert session.set_margins(Margins()) is None

    def test_close_resets_state(self, session, make_pdf):
        session.open_document(make_pdf())
        session.controller.add_area()
        session.close_document()
        assert session.document is None
        assert session.save_id is None
        assert session.layouts == {}
        assert session.controller.editing_area_id is None
        assert session.margin_model.margins == DEFAULT_MARGINS


class TestResume:
    def test_resume_restores_page_scale_areas_and_margins(self, config, extractor, make_pdf):
        path = make_pdf(pages=5)
        first = AnnotationSession(config, extractor=extractor)
        first.controller.container_rect = lambda: (0.0, 0.0, 1000.0, 1000.0)
        first.open_document(path)
        save_id = first.save_id
        first.go_to_page(3)
        first.zoom_in()
        area = first.controller.add_area()
        first.controller.finish_editing()
        first.set_margins(Margins(top=10, right=-20, bottom=-30, left=40))
        first.close_document()

        second = AnnotationSession(config, extractor=extractor)
        matches = second.open_document(path)
        assert matches.exact_match is not None
        assert second.resume(save_id)
        assert second.save_id == save_id
        assert second.current_page == 3
        assert second.scale == pytest.approx(1.2)
        assert [a.id for a in second.layout.visible()] == [area.id]
        assert second.margin_model.margins == Margins(top=10, right=-20, bottom=-30, left=40)

    def test_start_new_save_branches(self, session, make_pdf):
        path = make_pdf()
        session.open_document(path)
        original = session.save_id
        session.open_document(path)
        branched = session.start_new_save()
        assert branched not in (None, original)
        assert len(session.store.find_saves_for_file("doc.pdf", 3).exact_match.saves) == 2

    def test_resume_unknown_save(self, session, make_pdf, notifications):
        session.open_document(make_pdf())
        assert not session.resume("save_000000")
        assert notifications[-1][1] == "warning"


class TestNavigation:
    def test_page_change_is_persisted(self, session, make_pdf):
        session.open_document(make_pdf(pages=5))
        assert session.go_to_page(4)
        assert session.store.get_save(session.save_id).data["currentPage"] == 4

    def test_page_is_clamped(self, session, make_pdf):
        session.open_document(make_pdf(pages=5))
        session.go_to_page(99)
        assert session.current_page == 5
        session.go_to_page(-3)
        assert session.current_page == 1

    def test_page_change_refused_while_editing(self, session, make_pdf):
        session.open_document(make_pdf(pages=5))
        session.controller.add_area()
        assert not session.go_to_page(2)
        assert session.current_page == 1

    def test_areas_are_per_page(self, session, make_pdf):
        session.open_document(make_pdf(pages=5))
        session.controller.add_area()
        session.controller.finish_editing()
        session.go_to_page(2)
        assert session.layout.visible() == []
        session.go_to_page(1)
        assert len(session.layout.visible()) == 1

    def test_zoom_bounds_and_steps(self, session, make_pdf):
        session.open_document(make_pdf())
        for _ in range(20):
            session.zoom_in()
        assert session.scale == pytest.approx(2.5)
        for _ in range(20):
            session.zoom_out()
        assert session.scale == pytest.approx(0.5)
        session.reset_zoom()
        assert session.scale == 1.0
        assert session.margin_model.scale == 1.0


class TestTrackedPersistence:
    def test_drag_written_once_on_release(self, session, make_pdf):
        session.open_document(make_pdf())
        area = session.controller.add_area()
        session.controller.finish_editing()
        written = []
        session.store.save_written.connect(written.append)

        session.controller.pointer_down(PointerEvent(500, 500, HitTarget.AREA, area_id=area.id))
        for x in range(510, 600, 10):
            session.controller.pointer_move(PointerEvent(x, 500))
        assert written == []
        session.controller.pointer_up(PointerEvent(600, 500))

        assert len(written) == 1
        stored = session.store.get_save(session.save_id).data["contentAreas"]["1"][0]
        assert stored["x"] == pytest.approx(30.0)

    def test_margin_drag_persisted_per_page(self, session, make_pdf):
        session.open_document(make_pdf())
        session.controller.pointer_down(PointerEvent(0, 72, HitTarget.MARGIN, edge=MarginEdge.TOP))
        session.controller.pointer_move(PointerEvent(0, 100))
        session.controller.pointer_up(PointerEvent(0, 100))
        margins = session.store.get_save(session.save_id).data["margins"]
        assert margins["1"]["top"] == pytest.approx(100.0)

    def test_margin_preset(self, session, make_pdf):
        session.open_document(make_pdf())
        assert session.apply_margin_preset("Wide") == Margins(top=72, right=-144, bottom=-72, left=144)
        assert session.apply_margin_preset("Nope") is None


class TestPageMetadata:
    def test_validation_rules(self):
        assert validate_page_metadata({"pageType": "Map", "tags": []}) == []
        assert validate_page_metadata({"tags": []}) == ["Page type is required"]
        assert validate_page_metadata({"pageType": "Poster"}) == ["Unknown page type: Poster"]
        assert validate_page_metadata({"pageType": "Map", "tags": list("abcdefghijk")}) == [
            "Maximum 10 tags allowed"
        ]

    def test_save_runs_extraction_with_current_margins(self, session, extractor, make_pdf, notifications):
        path = make_pdf()
        session.open_document(path)
        assert session.save_page_metadata(1, {"pageType": "Title Page", "tags": ["cover"]})
        assert extractor.calls == [(path, 1, DEFAULT_MARGINS)]
        assert session.last_extraction.margins_arg == "72,72,-72,-72"
        assert session.store.get_save(session.save_id).data["pageMetadata"]["1"]["pageType"] == "Title Page"
        assert notifications[-1] == ("Metadata saved for page 1", "success")

    def test_invalid_metadata_not_stored(self, session, extractor, make_pdf, notifications):
        session.open_document(make_pdf())
        assert not session.save_page_metadata(1, {"tags": []})
        assert session.page_metadata == {}
        assert extractor.calls == []
        assert notifications[-1][1] == "error"

    def test_extraction_failure_only_notifies(self, config, make_pdf):
        session = AnnotationSession(config, extractor=FakeExtractor(fail=True))
        seen = []
        session.notification.connect(lambda message, severity: seen.append((message, severity)))
        session.open_document(make_pdf())
        margins_before = session.margin_model.margins

        assert session.save_page_metadata(1, {"pageType": "Map"})

        assert ("Error running parser: parser crashed", "error") in seen
        assert session.margin_model.margins == margins_before
        assert session.page_metadata[1]["pageType"] == "Map"
