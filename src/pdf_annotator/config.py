"""
Module: config

Purpose:
    Explicit configuration for the annotator. Replaces an ambient, globally
    mutable debug level with a value passed to the components that need it.

Key Classes:
    - AnnotatorConfig: Immutable editor, storage and logging settings

Key Functions:
    - configure_logging(): Apply the configured level to the package logger

Used By:
    - session.AnnotationSession
    - core.interaction.InteractionController
    - gui.app
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .paths import get_presets_path, get_saves_path

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

PACKAGE_LOGGER = "pdf_annotator"


@dataclass(frozen=True)
class AnnotatorConfig:
    """
    Configuration for an annotation session (immutable).

    Attributes:
        level: Log verbosity, one of debug|info|warn|error
        min_gap_px: Minimum distance kept between opposing margins
        min_area_percent: Minimum width/height of a content area (percent)
        zoom_min: Lowest zoom factor
        zoom_max: Highest zoom factor
        zoom_step: Zoom in/out increment
        storage_path: JSON file holding save records
        presets_path: JSON file holding margin presets
        extractor_command: External parser executable; None uses PyMuPDF

    Example:
        >>> config = AnnotatorConfig(level="debug")
        >>> config.log_level == logging.DEBUG
        True
    """

    level: str = "info"
    min_gap_px: float = 20.0
    min_area_percent: float = 0.5
    zoom_min: float = 0.5
    zoom_max: float = 2.5
    zoom_step: float = 0.2
    storage_path: Path = field(default_factory=get_saves_path)
    presets_path: Path = field(default_factory=get_presets_path)
    extractor_command: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.level not in LOG_LEVELS:
            raise ValueError(
                f"level must be one of {sorted(LOG_LEVELS)}: {self.level!r}"
            )
        if self.min_gap_px < 0:
            raise ValueError(f"min_gap_px must be >= 0: {self.min_gap_px}")
        if self.min_area_percent <= 0:
            raise ValueError(f"min_area_percent must be positive: {self.min_area_percent}")
        if not 0 < self.zoom_min <= self.zoom_max:
            raise ValueError(f"Invalid zoom range: {self.zoom_min}-{self.zoom_max}")

    @property
    def log_level(self) -> int:
        """The stdlib logging level for `level`."""
        return LOG_LEVELS[self.level]

    @classmethod
    def from_env(cls, **overrides) -> AnnotatorConfig:
        """
        Build a config from environment variables.

        PDF_ANNOTATOR_LOG_LEVEL sets the level directly; PDF_ANNOTATOR_DEBUG=true
        is a shortcut for level=debug. PDF_ANNOTATOR_PARSER sets the external
        extractor command. Keyword overrides win over the environment.
        """
        values: dict = {}
        level = os.environ.get("PDF_ANNOTATOR_LOG_LEVEL")
        if level:
            values["level"] = level.strip().lower()
        if os.environ.get("PDF_ANNOTATOR_DEBUG", "").lower() == "true":
            values["level"] = "debug"
        command = os.environ.get("PDF_ANNOTATOR_PARSER")
        if command:
            values["extractor_command"] = command
        values.update(overrides)
        return cls(**values)


def configure_logging(config: AnnotatorConfig, handler: Optional[logging.Handler] = None) -> logging.Logger:
    """
    Apply the config's level to the package logger.

    Args:
        config: Active configuration
        handler: Optional handler to attach (e.g. a StreamHandler from the launcher)

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(config.log_level)
    if handler is not None and handler not in logger.handlers:
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(handler)
    if config.level == "debug":
        logger.debug("Debug logging enabled")
    return logger
