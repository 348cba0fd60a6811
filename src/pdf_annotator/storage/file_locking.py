"""
Module: storage.file_locking

Purpose:
    Cross-platform locked read-modify-write of a JSON document.
    Uses portalocker for Mac, Windows, and Linux compatibility.

    The lock is held on a sidecar ``<name>.lock`` file so the data file
    itself can be replaced atomically (temp file + rename) while locked.

Key Functions:
    - locked_file: Context manager for locked file access
    - read_json: Read a JSON document, None if missing
    - atomic_write_json: Write via temp file and replace
    - locked_read_modify_write_json: The three above, under one lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - storage.save_store
    - storage.presets
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import portalocker

logger = logging.getLogger(__name__)


def lock_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


@contextmanager
def locked_file(
    path: Path,
    mode: str = "a",
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'w', 'a', etc.).
        lock_type: Lock type (LOCK_EX for exclusive, LOCK_SH for shared).

    Yields:
        Open file handle with lock held.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, mode, encoding="utf-8") as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def read_json(path: Path) -> Optional[Any]:
    """
    Read a JSON document.

    Returns:
        Parsed data, or None if the file does not exist or is empty.

    Raises:
        json.JSONDecodeError: If the file is not valid JSON
        OSError: If the file cannot be read
    """
    if not path.exists():
        return None
    content = path.read_text(encoding="utf-8")
    if not content.strip():
        return None
    return json.loads(content)


def atomic_write_json(path: Path, data: Any) -> None:
    """
    Write JSON with atomic replacement.

    Uses a temp file to prevent corruption if the write is interrupted.

    Raises:
        OSError: If the write or rename fails (temp file is cleaned up)
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        temp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        temp_path.replace(path)
    except OSError:
        try:
            if temp_path.exists():
                temp_path.unlink()
        except OSError:
            pass
        raise


def locked_read_modify_write_json(
    path: Path,
    modifier: Callable[[Optional[Any]], Any],
    reader: Callable[[Path], Optional[Any]] = read_json,
) -> Any:
    """
    Read JSON, apply modifier, write back - all with exclusive lock.

    Args:
        path: Path to JSON file.
        modifier: Function that takes existing data (None if absent) and
            returns the data to write.
        reader: Function used to load the current document.

    Returns:
        The modified data that was written.

    Raises:
        OSError: If locking, reading or writing fails.
    """
    with locked_file(lock_path_for(path), "a", portalocker.LOCK_EX):
        existing = reader(path)
        modified = modifier(existing)
        atomic_write_json(path, modified)

    logger.debug(f"Wrote {path.name}")
    return modified


def locked_read_json(
    path: Path,
    reader: Callable[[Path], Optional[Any]] = read_json,
) -> Optional[Any]:
    """Read JSON under a shared lock."""
    with locked_file(lock_path_for(path), "a", portalocker.LOCK_SH):
        return reader(path)
