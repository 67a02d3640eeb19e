"""Immutable ordered gallery collection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(frozen=True)
class GalleryItem:
    """A saved capture. Identity is its path; items are never mutated."""

    identity: str
    filename: str
    detection_label: str
    captured_at: datetime


class GalleryCollection:
    """Ordered, copy-on-write sequence of gallery items.

    Structural changes return a new collection so positions handed out to a
    selection store never change underneath it.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[GalleryItem] = ()) -> None:
        self._items: tuple[GalleryItem, ...] = tuple(items)

    @classmethod
    def newest_first(cls, items: Iterable[GalleryItem]) -> GalleryCollection:
        """Build a collection sorted by capture time, newest first, unique by identity."""
        unique: dict[str, GalleryItem] = {}
        for item in items:
            unique.setdefault(item.identity, item)
        return cls(sorted(unique.values(), key=lambda i: i.captured_at, reverse=True))

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[GalleryItem]:
        return iter(self._items)

    def __getitem__(self, index: int) -> GalleryItem:
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GalleryCollection):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"GalleryCollection(size={len(self._items)})"

    def index_of(self, identity: str) -> int:
        """Position of the item with ``identity``, or -1."""
        for position, item in enumerate(self._items):
            if item.identity == identity:
                return position
        return -1

    def without(self, index: int) -> GalleryCollection:
        if not 0 <= index < len(self._items):
            raise IndexError(f"gallery index out of range: {index}")
        return GalleryCollection(self._items[:index] + self._items[index + 1 :])
