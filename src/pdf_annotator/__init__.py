"""Top-level package for the PDF Annotator.

Provides subpackages:
- pdf_annotator.core – geometry, margin and content-area models, interaction
- pdf_annotator.storage – save records and margin presets
- pdf_annotator.document – PDF page access and text extraction
- pdf_annotator.gui – overlay widget and launcher
"""

import logging


def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            for line in pyproject.read_text().splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.1"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    try:
        from importlib.metadata import PackageNotFoundError, version as pkg_version
        return pkg_version("pdf-annotator")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()
__all__: list[str] = ["__version__"]

logging.getLogger(__name__).addHandler(logging.NullHandler())
