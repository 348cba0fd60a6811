"""
Named margin presets.

Lightweight JSON-backed store in the style of the settings store: a
malformed presets file falls back to the built-in presets, never a crash.
Built-in presets cannot be removed or overwritten.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from PySide6.QtCore import QObject, Signal

from ..core.models.margins import Margins
from .file_locking import locked_read_modify_write_json, read_json

logger = logging.getLogger(__name__)

BUILTIN_PRESETS: Dict[str, Margins] = {
    "Default (1 inch)": Margins(top=72.0, right=-72.0, bottom=-72.0, left=72.0),
    "No Margins": Margins(top=0.0, right=0.0, bottom=0.0, left=0.0),
    "Wide": Margins(top=72.0, right=-144.0, bottom=-72.0, left=144.0),
}


class MarginPresetStore(QObject):
    """Built-in plus user-defined margin presets."""

    presets_changed = Signal()

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._custom: Dict[str, Margins] = {}
        self._load()

    def _load(self) -> None:
        try:
            data = read_json(self.path)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Presets file {self.path.name} unreadable, using built-ins: {e}")
            return
        if not isinstance(data, dict):
            return
        for name, raw in (data.get("presets") or {}).items():
            if self.is_builtin(name):
                continue
            try:
                self._custom[name] = Margins.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed preset {name!r}: {e}")

    def names(self) -> List[str]:
        return list(BUILTIN_PRESETS) + sorted(self._custom)

    def get(self, name: str) -> Optional[Margins]:
        return BUILTIN_PRESETS.get(name) or self._custom.get(name)

    def is_builtin(self, name: str) -> bool:
        return name in BUILTIN_PRESETS

    def save_preset(self, name: str, margins: Margins) -> bool:
        """
        Store a user preset (sign-clamped).

        Returns False for empty names and built-in names.
        """
        name = name.strip()
        if not name or self.is_builtin(name):
            return False
        self._custom[name] = margins.clamp_signs()
        self._persist()
        return True

    def delete_preset(self, name: str) -> bool:
        if name not in self._custom:
            return False
        del self._custom[name]
        self._persist()
        return True

    def _persist(self) -> None:
        payload = {name: m.to_dict() for name, m in self._custom.items()}

        def modifier(_existing):
            return {"version": 1, "presets": payload}

        # The file is rewritten from memory, so its current content is never parsed
        try:
            locked_read_modify_write_json(self.path, modifier, reader=lambda _path: None)
        except OSError as e:
            logger.warning(f"Failed to save presets: {e}")
        self.presets_changed.emit()
