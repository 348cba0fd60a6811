"""
Module: content_area

Purpose:
    Provides the ContentArea dataclass - a user-defined rectangular region of
    interest on a page, positioned in percentages of the rendered page box,
    with a semantic type and a position in the content flow.

Key Classes:
    - AreaType: Semantic type of an area
    - AreaStatus: Lifecycle tag (active / deleted tombstone)
    - ContentArea: Immutable area record

Key Functions:
    - generate_id(prefix): Short opaque ids for areas and saves

Used By:
    - core.models.page_layout.PageLayout
    - core.interaction.InteractionController
    - render.visualizer
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

ID_ALPHABET = string.ascii_letters + string.digits + "_-"
ID_LENGTH = 6

DEFAULT_X = 20.0
DEFAULT_Y = 20.0
DEFAULT_WIDTH = 60.0
DEFAULT_HEIGHT = 10.0


def generate_id(prefix: str, length: int = ID_LENGTH) -> str:
    """
    Generate a short, readable opaque id.

    Example:
        >>> generate_id("area").startswith("area_")
        True
    """
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(length))
    return f"{prefix}_{suffix}"


class AreaType(str, Enum):
    """Semantic type of a content area."""

    TEXT = "text"
    HEADING = "heading"
    IMAGE = "image"
    TABLE = "table"
    CODE = "code"
    LIST = "list"

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]


_TYPE_LABELS = {
    AreaType.TEXT: "Text Content",
    AreaType.HEADING: "Heading",
    AreaType.IMAGE: "Image",
    AreaType.TABLE: "Data Table",
    AreaType.CODE: "Code Block",
    AreaType.LIST: "List",
}


class AreaStatus(str, Enum):
    """Lifecycle tag. Deleted areas are kept so ids stay resolvable."""

    ACTIVE = "active"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class ContentArea:
    """
    A rectangular region of interest on one page.

    Geometry is in percent of the rendered page box and is deliberately not
    clamped: areas may extend past, or sit entirely outside, the page.

    Attributes:
        id: Opaque unique token, immutable
        type: Semantic type
        x: Left edge, percent of page width
        y: Top edge, percent of page height
        width: Width, percent of page width
        height: Height, percent of page height
        index: Zero-based position in the content flow (non-deleted areas)
        name: Display label
        status: ACTIVE or DELETED
        meta: Extension data

    Example:
        >>> area = ContentArea.create(index=2)
        >>> area.name
        'Area 3'
        >>> area.with_updates(x=5.0).x
        5.0
    """

    id: str
    type: AreaType = AreaType.TEXT
    x: float = DEFAULT_X
    y: float = DEFAULT_Y
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    index: int = 0
    name: str = ""
    status: AreaStatus = AreaStatus.ACTIVE
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ContentArea id must be non-empty")
        if not isinstance(self.type, AreaType):
            object.__setattr__(self, "type", AreaType(self.type))
        if not self.name:
            object.__setattr__(self, "name", f"Area {self.index + 1}")

    @classmethod
    def create(cls, **kwargs: Any) -> ContentArea:
        """New area with a freshly generated id."""
        return cls(id=generate_id("area"), **kwargs)

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def deleted(self) -> bool:
        return self.status is AreaStatus.DELETED

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    # ─────────────────────────────────────────────────────────────────────────
    # Updates
    # ─────────────────────────────────────────────────────────────────────────

    def with_updates(self, **changes: Any) -> ContentArea:
        """
        Copy with fields replaced.

        Accepts the serialized `deleted` flag as an alias for `status`.
        The id can never change.
        """
        changes.pop("id", None)
        if "deleted" in changes:
            changes["status"] = AreaStatus.DELETED if changes.pop("deleted") else AreaStatus.ACTIVE
        if "type" in changes:
            changes["type"] = AreaType(changes["type"])
        return replace(self, **changes)

    def mark_deleted(self) -> ContentArea:
        return replace(self, status=AreaStatus.DELETED)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "index": self.index,
            "name": self.name,
            "deleted": self.deleted,
            "meta": dict(self.meta),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContentArea:
        """Deserialize, filling defaults for any missing field."""
        return cls(
            id=data.get("id") or generate_id("area"),
            type=AreaType(data.get("type") or AreaType.TEXT.value),
            x=float(data.get("x", DEFAULT_X)),
            y=float(data.get("y", DEFAULT_Y)),
            width=float(data.get("width", DEFAULT_WIDTH)),
            height=float(data.get("height", DEFAULT_HEIGHT)),
            index=int(data.get("index", 0)),
            name=data.get("name") or "",
            status=AreaStatus.DELETED if data.get("deleted") else AreaStatus.ACTIVE,
            meta=dict(data.get("meta") or {}),
        )

    def __repr__(self) -> str:
        flag = " deleted" if self.deleted else ""
        return (
            f"ContentArea({self.id}, #{self.index}, {self.type.value}, "
            f"{self.x:.1f},{self.y:.1f} {self.width:.1f}x{self.height:.1f}{flag})"
        )
