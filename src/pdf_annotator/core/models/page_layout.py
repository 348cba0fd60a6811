"""
Module: page_layout

Purpose:
    The ordered collection of content areas on one page, including deleted
    tombstones, and the operations that keep the flow index dense.

Invariant:
    After every add/delete/reorder, the non-deleted areas carry index values
    0..n-1 in their array order. Deleted areas keep their last index, which is
    never read while they are deleted.

Key Classes:
    - PageLayout: Mutable per-page area list
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Optional

from .content_area import ContentArea

logger = logging.getLogger(__name__)


class PageLayout:
    """
    Content areas of a single page, in array order.

    Areas themselves are immutable; every change swaps in a new instance at
    the same position so ids stay stable.
    """

    def __init__(self, areas: Iterable[ContentArea] = ()) -> None:
        self._areas: list[ContentArea] = list(areas)

    def __iter__(self) -> Iterator[ContentArea]:
        return iter(self._areas)

    def __len__(self) -> int:
        return len(self._areas)

    @property
    def areas(self) -> tuple[ContentArea, ...]:
        """All areas including tombstones."""
        return tuple(self._areas)

    def visible(self) -> list[ContentArea]:
        """Non-deleted areas in flow order."""
        return sorted((a for a in self._areas if not a.deleted), key=lambda a: a.index)

    def get(self, area_id: str) -> Optional[ContentArea]:
        for area in self._areas:
            if area.id == area_id:
                return area
        return None

    def next_index(self) -> int:
        """max(non-deleted index) + 1, or 0 when the page has no live areas."""
        indices = [a.index for a in self._areas if not a.deleted]
        return max(indices, default=-1) + 1

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation
    # ─────────────────────────────────────────────────────────────────────────

    def add(self, area: Optional[ContentArea] = None) -> ContentArea:
        """
        Append an area at the end of the flow.

        Args:
            area: Area to append; a default-geometry area is created if None.
                Its index is overwritten with next_index().
        """
        index = self.next_index()
        if area is None:
            area = ContentArea.create(index=index)
        else:
            area = area.with_updates(index=index)
        self._areas.append(area)
        logger.debug(f"Added {area!r}")
        return area

    def add_drawn(self, x: float, y: float, width: float, height: float) -> ContentArea:
        """Append an area with the geometry of a finished rubber-band draw."""
        return self.add(ContentArea.create(x=x, y=y, width=width, height=height, index=self.next_index()))

    def update(self, area_id: str, **changes: Any) -> Optional[ContentArea]:
        """
        Replace fields of one area.

        Returns the new area, or None if the id is unknown. Flow indices are
        re-derived when the update toggles deletion.
        """
        changes.pop("index", None)
        for pos, area in enumerate(self._areas):
            if area.id == area_id:
                updated = area.with_updates(**changes)
                self._areas[pos] = updated
                if updated.deleted != area.deleted:
                    self.reindex()
                    updated = self._areas[pos]
                return updated
        logger.debug(f"Update ignored, unknown area {area_id}")
        return None

    def delete(self, area_id: str) -> bool:
        """Soft-delete an area. Returns False if the id is unknown or already deleted."""
        area = self.get(area_id)
        if area is None or area.deleted:
            return False
        self.update(area_id, deleted=True)
        return True

    def reorder(self, source_index: int, dest_index: int) -> bool:
        """
        Move an area within the visible (non-deleted) list.

        Args:
            source_index: Position in visible() of the area to move
            dest_index: Position in visible() where it should end up

        Returns:
            False when either position is out of range.
        """
        visible = self.visible()
        if not (0 <= source_index < len(visible) and 0 <= dest_index < len(visible)):
            logger.debug(f"Reorder ignored, {source_index}->{dest_index} out of range")
            return False

        moved = visible.pop(source_index)
        visible.insert(dest_index, moved)

        # Live areas take the new order; tombstones stay at the tail
        tombstones = [a for a in self._areas if a.deleted]
        self._areas = visible + tombstones
        self.reindex()
        return True

    def reindex(self) -> None:
        """Re-derive dense indices for non-deleted areas from array order."""
        position = 0
        for pos, area in enumerate(self._areas):
            if area.deleted:
                continue
            if area.index != position:
                self._areas[pos] = area.with_updates(index=position)
            position += 1

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def export(self) -> list[dict[str, Any]]:
        """Visible areas only, in flow order."""
        return [a.to_dict() for a in self.visible()]

    def to_list(self) -> list[dict[str, Any]]:
        """All areas including tombstones, for persistence."""
        return [a.to_dict() for a in self._areas]

    @classmethod
    def from_list(cls, data: Iterable[dict[str, Any]]) -> PageLayout:
        return cls(ContentArea.from_dict(item) for item in data)
