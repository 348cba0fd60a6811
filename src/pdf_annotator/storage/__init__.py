"""
Storage Package

Persistence for annotation sessions: the save-record collection and named
margin presets, both JSON files guarded by portalocker.
"""

from .presets import BUILTIN_PRESETS, MarginPresetStore
from .save_store import SaveGroup, SaveMatches, SaveRecord, SaveStore, format_timestamp

__all__ = [
    "BUILTIN_PRESETS",
    "MarginPresetStore",
    "SaveGroup",
    "SaveMatches",
    "SaveRecord",
    "SaveStore",
    "format_timestamp",
]
