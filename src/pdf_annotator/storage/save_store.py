"""
Module: storage.save_store

Purpose:
    Keyed, timestamped save records for annotation sessions, stored as one
    JSON collection. Each operation is a read-modify-write of the whole
    collection under an exclusive file lock.

    Any malformed file results in a logged fallback to an empty collection
    (the bad file is moved aside), never a crash. Write failures are logged
    and reported through write_failed; the store keeps serving the
    in-memory copy so editing can continue.

Key Classes:
    - SaveRecord: One persisted session snapshot
    - SaveGroup / SaveMatches: Result of looking up saves for a file
    - SaveStore: The collection

Used By:
    - session.AnnotationSession
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from PySide6.QtCore import QObject, Signal

from ..core.models.content_area import generate_id
from ..errors import StorageError
from .file_locking import locked_read_json, locked_read_modify_write_json, read_json
from .validation import COLLECTION_SCHEMA_VERSION, validate_collection

logger = logging.getLogger(__name__)


def default_save_data() -> Dict[str, Any]:
    return {
        "currentPage": 1,
        "scale": 1.0,
        "metadata": {},
        "contentAreas": {},
    }


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_timestamp(timestamp: Optional[str]) -> str:
    """
    Short human-readable form of a stored timestamp.

    Example:
        >>> format_timestamp("2024-03-05T14:07:00.000Z")
        '3/5/24, 2:07 PM'
        >>> format_timestamp(None)
        'Unknown'
    """
    if not timestamp:
        return "Unknown"
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return "Unknown"
    hour = parsed.hour % 12 or 12
    suffix = "AM" if parsed.hour < 12 else "PM"
    return f"{parsed.month}/{parsed.day}/{parsed:%y}, {hour}:{parsed:%M} {suffix}"


@dataclass(frozen=True)
class SaveRecord:
    """
    A persisted snapshot of one document's annotation session.

    Attributes:
        id: Opaque save id
        file_name: Document file name the save belongs to
        page_count: Page count of that document
        created_at: ISO timestamp of creation
        updated_at: ISO timestamp of the last load or change
        data: currentPage, scale, metadata, contentAreas (+ margins, pageMetadata)
    """

    id: str
    file_name: str
    page_count: int
    created_at: str
    updated_at: str
    data: Dict[str, Any] = field(default_factory=default_save_data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "pageCount": self.page_count,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "data": copy.deepcopy(self.data),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SaveRecord:
        return cls(
            id=data["id"],
            file_name=data["fileName"],
            page_count=data["pageCount"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            data=copy.deepcopy(data.get("data") or {}),
        )


@dataclass(frozen=True)
class SaveGroup:
    """Saves sharing one (file_name, page_count) identity."""

    file_name: str
    page_count: int
    saves: List[SaveRecord]


@dataclass(frozen=True)
class SaveMatches:
    """
    Saves relevant to a document being opened.

    Attributes:
        exact_match: Saves for the same (file_name, page_count), or None
        other_saves: Every other save, one group per record
    """

    exact_match: Optional[SaveGroup]
    other_saves: List[SaveGroup]

    @property
    def has_any(self) -> bool:
        return self.exact_match is not None or bool(self.other_saves)


class SaveStore(QObject):
    """
    JSON-backed collection of save records.

    The file layout is ``{"version": 1, "saves": [record, ...]}``.
    Concurrent processes never drop each other's records because every
    operation re-reads the file under the lock; edits of the SAME record from
    two processes remain last-write-wins.
    """

    save_written = Signal(str)
    write_failed = Signal(str)

    def __init__(
        self,
        path: Path,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.path = Path(path)
        self._clock = clock
        self._saves: List[Dict[str, Any]] = []
        self._saves = self._read_saves()

    # ─────────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────────

    def create_save(self, file_name: str, page_count: int) -> str:
        """
        Append a new record with default data.

        Returns:
            The new save id (also when the write failed; the record then
            lives in memory only).
        """
        save_id = generate_id("save")
        now = self._now()
        record = SaveRecord(
            id=save_id,
            file_name=file_name,
            page_count=page_count,
            created_at=now,
            updated_at=now,
        )

        def add(saves: List[Dict[str, Any]]) -> bool:
            saves.append(record.to_dict())
            return True

        self._transaction(add, save_id)
        logger.info(f"Created save {save_id} for {file_name} ({page_count} pages)")
        return save_id

    def load_save(self, save_id: str) -> Optional[Dict[str, Any]]:
        """
        Return a save's data and refresh its updatedAt.

        Returns:
            A copy of the record's data, or None if the id is unknown.
        """
        found: Dict[str, Any] = {}

        def touch(saves: List[Dict[str, Any]]) -> bool:
            record = _find(saves, save_id)
            if record is None:
                return False
            record["updatedAt"] = self._now()
            found["data"] = copy.deepcopy(record.get("data") or {})
            return True

        if not self._transaction(touch, save_id):
            logger.info(f"Save {save_id} not found")
            return None
        return found["data"]

    def update_save(self, save_id: str, partial: Dict[str, Any]) -> bool:
        """
        Shallow-merge fields into a save's data and refresh updatedAt.

        Returns:
            False (and writes nothing) if the id is unknown.
        """

        def merge(saves: List[Dict[str, Any]]) -> bool:
            record = _find(saves, save_id)
            if record is None:
                return False
            data = record.setdefault("data", {})
            data.update(copy.deepcopy(partial))
            record["updatedAt"] = self._now()
            return True

        updated = self._transaction(merge, save_id)
        if not updated:
            logger.debug(f"update_save ignored, unknown save {save_id}")
        return updated

    def find_saves_for_file(self, file_name: str, page_count: int) -> SaveMatches:
        """
        Split saves into those for (file_name, page_count) and everything else.

        Used when a document opens, to offer resuming a save or branching.
        """
        records = [SaveRecord.from_dict(s) for s in self._refresh()]
        exact = [r for r in records if r.file_name == file_name and r.page_count == page_count]
        others = [r for r in records if not (r.file_name == file_name and r.page_count == page_count)]
        return SaveMatches(
            exact_match=SaveGroup(file_name, page_count, exact) if exact else None,
            other_saves=[SaveGroup(r.file_name, r.page_count, [r]) for r in others],
        )

    def get_save(self, save_id: str) -> Optional[SaveRecord]:
        """Full record without touching updatedAt."""
        record = _find(self._refresh(), save_id)
        return SaveRecord.from_dict(record) if record is not None else None

    def list_saves(self) -> List[SaveRecord]:
        """All records, most recently updated first."""
        records = [SaveRecord.from_dict(s) for s in self._refresh()]
        return sorted(records, key=lambda r: r.updated_at, reverse=True)

    def delete_save(self, save_id: str) -> bool:
        """Remove a record. Only ever called on explicit user request."""

        def remove(saves: List[Dict[str, Any]]) -> bool:
            record = _find(saves, save_id)
            if record is None:
                return False
            saves.remove(record)
            return True

        removed = self._transaction(remove, save_id)
        if removed:
            logger.info(f"Deleted save {save_id}")
        return removed

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _now(self) -> str:
        return utc_timestamp(self._clock())

    def _transaction(self, mutate: Callable[[List[Dict[str, Any]]], bool], save_id: str) -> bool:
        """
        Apply mutate to the freshest collection and persist it.

        mutate returns False to signal "nothing to write". A change that would
        make the collection fail validation is rejected before anything is
        written, so one bad record never makes the whole file unreadable. On
        write failure the in-memory copy still carries the change.
        """
        outcome = {"ran": False, "changed": False}

        def modifier(existing: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            saves = self._coerce(existing)
            outcome["ran"] = True
            outcome["changed"] = mutate(saves)
            document = {"version": COLLECTION_SCHEMA_VERSION, "saves": saves}
            if outcome["changed"]:
                validate_collection(document, str(self.path))
            self._saves = saves
            return document

        try:
            locked_read_modify_write_json(self.path, modifier, reader=self._safe_read)
        except StorageError as e:
            message = f"Rejected change to save {save_id}: {e}"
            logger.warning(message)
            self.write_failed.emit(message)
            return False
        except OSError as e:
            if not outcome["ran"]:
                # Lock or read failed before mutate ran; apply to the cache
                saves = copy.deepcopy(self._saves)
                outcome["changed"] = mutate(saves)
                if outcome["changed"]:
                    try:
                        validate_collection({"version": COLLECTION_SCHEMA_VERSION, "saves": saves})
                    except StorageError as invalid:
                        logger.warning(f"Rejected change to save {save_id}: {invalid}")
                        return False
                self._saves = saves
            if outcome["changed"]:
                message = f"Failed to save {self.path.name}: {e}"
                logger.warning(message)
                self.write_failed.emit(message)
            return outcome["changed"]

        if outcome["changed"]:
            self.save_written.emit(save_id)
        return outcome["changed"]

    def _refresh(self) -> List[Dict[str, Any]]:
        """Re-read the collection for read-only queries."""
        try:
            existing = locked_read_json(self.path, reader=self._safe_read)
        except OSError as e:
            logger.warning(f"Failed to read {self.path.name}, using cached saves: {e}")
            return self._saves
        self._saves = self._coerce(existing)
        return self._saves

    def _read_saves(self) -> List[Dict[str, Any]]:
        try:
            return self._coerce(locked_read_json(self.path, reader=self._safe_read))
        except OSError as e:
            logger.warning(f"Failed to read {self.path.name}: {e}")
            return []

    def _safe_read(self, path: Path) -> Optional[Dict[str, Any]]:
        """Read and validate; a corrupt file is moved aside and reads as empty."""
        try:
            data = read_json(path)
            if data is None:
                return None
            validate_collection(data, str(path))
            return data
        except (json.JSONDecodeError, StorageError) as e:
            logger.warning(f"Save file {path.name} is unusable, starting empty: {e}")
            self._quarantine(path)
            return None

    def _quarantine(self, path: Path) -> None:
        target = path.with_name(path.name + ".corrupt")
        try:
            path.replace(target)
            logger.warning(f"Moved unusable save file to {target.name}")
        except OSError as e:
            logger.warning(f"Could not move aside {path.name}: {e}")

    @staticmethod
    def _coerce(existing: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not existing:
            return []
        return list(existing.get("saves") or [])


def _find(saves: List[Dict[str, Any]], save_id: str) -> Optional[Dict[str, Any]]:
    for record in saves:
        if record.get("id") == save_id:
            return record
    return None
