"""
Path utilities for dev vs installed data locations.

Dev mode: Uses local workspace/ directory
Installed: Uses the system-standard application data directory
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

from PySide6.QtCore import QStandardPaths

APP_NAME = "PDF Annotator"
SAVES_FILENAME = "pdf_annotation_saves.json"
PRESETS_FILENAME = "margin_presets.json"


def is_frozen() -> bool:
    """Check if running as a frozen (PyInstaller) application."""
    return getattr(sys, "frozen", False) or hasattr(sys, "_MEIPASS")


def get_app_data_dir() -> Path:
    """
    Get the application data directory for persisted saves and presets.

    PDF_ANNOTATOR_HOME overrides everything.
    Frozen: ~/Library/Application Support/PDF Annotator (macOS)
            or %LOCALAPPDATA%/PDF Annotator (Windows)
    Dev: workspace/
    """
    override = os.environ.get("PDF_ANNOTATOR_HOME")
    if override:
        return Path(override)

    if not is_frozen():
        return Path.cwd() / "workspace"

    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.AppLocalDataLocation
    )
    if location:
        return Path(location)
    return Path.home() / ".local/share" / APP_NAME


def get_saves_path() -> Path:
    """Path of the JSON file holding all save records."""
    return get_app_data_dir() / SAVES_FILENAME


def get_presets_path() -> Path:
    """Path of the JSON file holding named margin presets."""
    return get_app_data_dir() / PRESETS_FILENAME
