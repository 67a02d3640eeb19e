"""Multi-select state over an ordered gallery collection.

The store only knows positions ``0..size-1``; the collection itself is owned
elsewhere. Every mutating call notifies subscribers exactly once with the
current selection count (0 means "nothing selected / selection inactive").

Not thread-safe: all calls are expected from a single thread.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class GallerySelectionStore:
    """Index-set selection with an on/off selection mode."""

    def __init__(self, size: int = 0) -> None:
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")
        self._size = size
        self._selected: set[int] = set()
        self._selection_mode = False
        self._listeners: list[Callable[[int], None]] = []

    # -- Observers ----------------------------------------------------------

    def subscribe(self, listener: Callable[[int], None]) -> Callable[[], None]:
        """Register a count listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        count = len(self._selected)
        for listener in list(self._listeners):
            listener(count)

    # -- Queries ------------------------------------------------------------

    @property
    def size(self) -> int:
        return self._size

    @property
    def selection_mode(self) -> bool:
        return self._selection_mode

    @property
    def count(self) -> int:
        return len(self._selected)

    def is_selected(self, index: int) -> bool:
        return index in self._selected

    def selected_indices(self) -> list[int]:
        """Selected positions in ascending order."""
        return sorted(self._selected)

    # -- Mutations ----------------------------------------------------------

    def toggle(self, index: int) -> None:
        """Flip ``index``; out-of-range positions are ignored."""
        if not 0 <= index < self._size:
            logger.debug("Ignoring toggle of %d (size=%d)", index, self._size)
            return
        if index in self._selected:
            self._selected.remove(index)
        else:
            self._selected.add(index)
        self._notify()

    def select_all(self) -> None:
        self._selected = set(range(self._size))
        self._notify()

    def clear(self) -> None:
        self._selected.clear()
        self._notify()

    def set_selection_mode(self, active: bool) -> None:
        """Enter or leave selection mode; leaving it drops the selection."""
        if active == self._selection_mode:
            return
        self._selection_mode = active
        if not active:
            self._selected.clear()
        self._notify()

    def remove_at(self, index: int) -> None:
        """Record that the owner deleted position ``index``.

        Other selected positions are NOT shifted down. When deleting several
        items, remove them in strictly descending order so the positions still
        to be removed stay valid.
        """
        if not 0 <= index < self._size:
            return
        self._selected.discard(index)
        self._size -= 1
        self._selected = {i for i in self._selected if i < self._size}
        self._notify()

    def remove_and_shift(self, index: int) -> None:
        """Record a single deletion at ``index`` and renumber the positions after it.

        Use this for one-off deletes while a selection may be active; batch
        deletes go through :meth:`remove_at` in descending order instead.
        """
        if not 0 <= index < self._size:
            return
        self._size -= 1
        self._selected = {i - 1 if i > index else i for i in self._selected if i != index}
        self._notify()

    def reset(self, size: int) -> None:
        """Rebind to a structurally different collection of ``size`` items."""
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")
        self._size = size
        self._selected.clear()
        self._notify()
