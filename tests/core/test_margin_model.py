"""
Unit Tests for MarginModel drag sessions.
"""

import pytest

from pdf_annotator.core.margin_model import MarginModel
from pdf_annotator.core.models.margins import DEFAULT_MARGINS, MarginEdge, Margins
from pdf_annotator.errors import SessionActiveError

PAGE = (612.0, 792.0)


@pytest.fixture
def model() -> MarginModel:
    model = MarginModel()
    model.page_size = PAGE
    return model


def _holds_invariant(m: Margins, page=PAGE, gap=20.0) -> bool:
    width, height = page
    return (
        m.vertical_span <= height - gap + 1e-9
        and m.horizontal_span <= width - gap + 1e-9
        and m.top >= 0
        and m.left >= 0
        and m.right <= 0
        and m.bottom <= 0
    )


class TestMarginDrag:
    """Tests for begin_drag / update_drag / end_drag."""

    def test_drag_top_down_increases_top(self, model):
        session = model.begin_drag(MarginEdge.TOP, (100, 100))
        result = model.update_drag(session, (100, 130))
        assert result.top == pytest.approx(102.0)
        assert model.margins == result

    def test_drag_right_left_moves_inward(self, model):
        session = model.begin_drag(MarginEdge.RIGHT, (500, 100))
        result = model.update_drag(session, (480, 100))
        assert result.right == pytest.approx(-92.0)

    def test_delta_is_divided_by_scale(self, model):
        model.scale = 2.0
        session = model.begin_drag(MarginEdge.LEFT, (0, 0))
        result = model.update_drag(session, (40, 0))
        assert result.left == pytest.approx(92.0)

    def test_explicit_arguments_override_model_state(self, model):
        start = Margins(top=10, right=0, bottom=0, left=0)
        session = model.begin_drag(MarginEdge.TOP, (0, 0), start, (100.0, 100.0), 1.0)
        result = model.update_drag(session, (0, 500))
        assert result.top == pytest.approx(80.0)

    def test_update_is_idempotent(self, model):
        session = model.begin_drag(MarginEdge.BOTTOM, (0, 700))
        first = model.update_drag(session, (0, 650))
        second = model.update_drag(session, (0, 650))
        assert first == second

    def test_signal_only_on_change(self, model):
        emitted = []
        model.margins_changed.connect(emitted.append)
        session = model.begin_drag(MarginEdge.TOP, (0, 0))
        model.update_drag(session, (0, 10))
        model.update_drag(session, (0, 10))
        model.update_drag(session, (0, 0))
        assert len(emitted) == 2
        assert emitted[-1] == DEFAULT_MARGINS

    def test_invariant_after_every_update(self, model):
        session = model.begin_drag(MarginEdge.TOP, (0, 0))
        for y in range(-200, 1200, 37):
            assert _holds_invariant(model.update_drag(session, (0, y)))

    def test_dragging_past_opposite_edge_pushes_it(self, model):
        session = model.begin_drag(MarginEdge.TOP, (0, 0))
        result = model.update_drag(session, (0, 700))
        assert result.top == pytest.approx(772.0)
        assert result.bottom == pytest.approx(0.0)

    def test_second_begin_raises(self, model):
        model.begin_drag(MarginEdge.TOP, (0, 0))
        with pytest.raises(SessionActiveError):
            model.begin_drag(MarginEdge.LEFT, (0, 0))

    def test_end_drag_allows_new_session(self, model):
        session = model.begin_drag(MarginEdge.TOP, (0, 0))
        model.end_drag(session)
        assert model.session is None
        model.begin_drag(MarginEdge.LEFT, (0, 0))


class TestDirectEdits:
    def test_set_margins_clamps_signs(self, model):
        result = model.set_margins(Margins(top=-5, right=30, bottom=-40, left=50))
        assert result == Margins(top=0, right=0, bottom=-40, left=50)

    def test_set_margins_resolves_against_page(self, model):
        result = model.set_margins(Margins(top=600, right=0, bottom=-600, left=0))
        assert _holds_invariant(result)

    def test_set_edge_wins_conflict(self, model):
        result = model.set_edge(MarginEdge.BOTTOM, -760)
        assert result.bottom == pytest.approx(-760.0)
        assert result.top == pytest.approx(12.0)

    def test_clear(self, model):
        assert model.clear() == Margins()
