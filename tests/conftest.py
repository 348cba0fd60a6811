import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add src to sys.path so we can import pdf_annotator
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())


# Common test fixtures
@pytest.fixture
def make_pdf(tmp_path: Path):
    """Factory writing a PDF with one line of text per page."""
    import fitz

    def _make(name: str = "doc.pdf", pages: int = 3, size=(612, 792), texts=None) -> Path:
        path = tmp_path / name
        doc = fitz.open()
        for i in range(pages):
            page = doc.new_page(width=size[0], height=size[1])
            text = texts[i] if texts else f"Page {i + 1} body text"
            page.insert_text((100, 100), text, fontsize=12)
        doc.save(path)
        doc.close()
        return path

    return _make


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = datetime(2024, 3, 5, 14, 7, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def saves_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "pdf_annotation_saves.json"
