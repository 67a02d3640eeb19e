"""Gallery browsing session: current collection plus its selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from visionhelper.gallery.collection import GalleryCollection
from visionhelper.gallery.selection import GallerySelectionStore

if TYPE_CHECKING:
    from visionhelper.gallery.storage import LocalGallery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteOutcome:
    deleted: int
    failed: int

    @property
    def message(self) -> str:
        if self.deleted > 0 and self.failed == 0:
            return f"{self.deleted} items deleted"
        if self.deleted > 0:
            return f"{self.deleted} deleted, {self.failed} failed"
        return "Failed to delete items"


class GallerySession:
    """Owns the gallery snapshot and keeps the selection store aligned with it."""

    def __init__(self, gallery: LocalGallery) -> None:
        self._gallery = gallery
        self._items = GalleryCollection()
        self.selection = GallerySelectionStore()

    @property
    def items(self) -> GalleryCollection:
        return self._items

    def refresh(self) -> GalleryCollection:
        """Reload from storage. The selection is cleared since positions changed."""
        self._items = self._gallery.load()
        self.selection.reset(len(self._items))
        return self._items

    def _delete_item(self, index: int) -> bool:
        if not 0 <= index < len(self._items):
            return False
        if not self._gallery.delete(self._items[index].identity):
            return False
        self._items = self._items.without(index)
        return True

    def delete_at(self, index: int) -> bool:
        """Delete one capture by position, keeping the selection on the same items."""
        if not self._delete_item(index):
            return False
        self.selection.remove_and_shift(index)
        return True

    def delete_identity(self, identity: str) -> bool:
        index = self._items.index_of(identity)
        if index >= 0:
            return self.delete_at(index)
        # Not in the current snapshot; delete and resync.
        deleted = self._gallery.delete(identity)
        if deleted:
            self.refresh()
        return deleted

    def delete_selected(self) -> DeleteOutcome:
        """Delete every selected capture, then leave selection mode."""
        deleted = failed = 0
        for index in sorted(self.selection.selected_indices(), reverse=True):
            if self._delete_item(index):
                self.selection.remove_at(index)
                deleted += 1
            else:
                failed += 1

        self.selection.clear()
        self.selection.set_selection_mode(False)
        outcome = DeleteOutcome(deleted=deleted, failed=failed)
        logger.info("Batch delete: %s", outcome.message)
        return outcome
