"""Tests for gallery multi-select bookkeeping."""

from __future__ import annotations

import pytest

from visionhelper.gallery.selection import GallerySelectionStore


class _Recorder:
    def __init__(self) -> None:
        self.counts: list[int] = []

    def __call__(self, count: int) -> None:
        self.counts.append(count)


@pytest.fixture()
def recorder() -> _Recorder:
    return _Recorder()


@pytest.fixture()
def store(recorder: _Recorder) -> GallerySelectionStore:
    s = GallerySelectionStore(size=5)
    s.subscribe(recorder)
    return s


class TestSelectionOperations:
    def test_select_all_then_clear(self, store: GallerySelectionStore, recorder: _Recorder) -> None:
        store.select_all()
        assert store.count == 5
        assert store.selected_indices() == [0, 1, 2, 3, 4]

        store.clear()
        assert store.count == 0
        assert recorder.counts == [5, 0]

    def test_double_toggle_restores_membership(self, store: GallerySelectionStore) -> None:
        store.toggle(1)
        before = store.selected_indices()

        store.toggle(2)
        store.toggle(2)

        assert store.selected_indices() == before

    def test_toggle_notifies_with_new_count(self, store: GallerySelectionStore, recorder: _Recorder) -> None:
        store.toggle(0)
        store.toggle(3)
        store.toggle(0)
        assert recorder.counts == [1, 2, 1]

    @pytest.mark.parametrize("index", [-1, 5, 100])
    def test_out_of_range_toggle_is_silent_noop(
        self, store: GallerySelectionStore, recorder: _Recorder, index: int
    ) -> None:
        store.toggle(index)
        assert store.count == 0
        assert recorder.counts == []

    def test_select_all_on_empty_collection(self, recorder: _Recorder) -> None:
        empty = GallerySelectionStore()
        empty.subscribe(recorder)
        empty.select_all()
        assert empty.count == 0
        assert recorder.counts == [0]

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValueError, match="size"):
            GallerySelectionStore(size=-1)


class TestSelectionMode:
    def test_leaving_selection_mode_clears(self, store: GallerySelectionStore, recorder: _Recorder) -> None:
        store.set_selection_mode(True)
        store.toggle(1)
        store.toggle(2)

        store.set_selection_mode(False)

        assert store.selection_mode is False
        assert store.count == 0
        assert recorder.counts[-1] == 0

    def test_setting_same_mode_does_not_notify(self, store: GallerySelectionStore, recorder: _Recorder) -> None:
        store.set_selection_mode(False)
        assert recorder.counts == []

    def test_entering_mode_keeps_selection(self, store: GallerySelectionStore) -> None:
        store.toggle(4)
        store.set_selection_mode(True)
        assert store.selected_indices() == [4]


class TestObservers:
    def test_unsubscribe_stops_notifications(self, recorder: _Recorder) -> None:
        store = GallerySelectionStore(size=3)
        unsubscribe = store.subscribe(recorder)
        store.toggle(0)
        unsubscribe()
        store.toggle(1)
        assert recorder.counts == [1]

    def test_each_mutation_notifies_exactly_once(self) -> None:
        store = GallerySelectionStore(size=4)
        recorder = _Recorder()
        store.subscribe(recorder)

        store.set_selection_mode(True)
        store.select_all()
        store.remove_at(3)
        store.clear()

        assert recorder.counts == [0, 4, 3, 0]


class TestBatchRemoval:
    @staticmethod
    def _delete_selected(items: list[str], store: GallerySelectionStore, order: list[int]) -> None:
        for index in order:
            if 0 <= index < len(items):
                del items[index]
                store.remove_at(index)

    def test_descending_removal_deletes_exactly_the_selection(self) -> None:
        items = ["a", "b", "c", "d", "e"]
        store = GallerySelectionStore(size=len(items))
        for index in (1, 3, 4):
            store.toggle(index)

        self._delete_selected(items, store, sorted(store.selected_indices(), reverse=True))

        assert items == ["a", "c"]
        assert store.size == 2
        assert store.count == 0

    def test_ascending_removal_corrupts_the_collection(self) -> None:
        # Unsupported usage: the store does not shift indices, so removing in
        # ascending order deletes the wrong items.
        items = ["a", "b", "c", "d", "e"]
        store = GallerySelectionStore(size=len(items))
        for index in (1, 3, 4):
            store.toggle(index)

        self._delete_selected(items, store, sorted(store.selected_indices()))

        assert items != ["a", "c"]
        assert items == ["a", "c", "d"]

    def test_remove_at_out_of_range_is_noop(self, store: GallerySelectionStore, recorder: _Recorder) -> None:
        store.remove_at(7)
        assert store.size == 5
        assert recorder.counts == []

    def test_reset_clears_selection_for_new_collection(self, store: GallerySelectionStore) -> None:
        store.select_all()
        store.reset(2)
        assert store.size == 2
        assert store.count == 0


class TestSingleRemoval:
    def test_remove_and_shift_keeps_selection_on_same_items(self) -> None:
        items = ["a", "b", "c", "d", "e"]
        store = GallerySelectionStore(size=len(items))
        store.toggle(1)
        store.toggle(3)

        del items[0]
        store.remove_and_shift(0)

        assert store.size == 4
        assert [items[i] for i in store.selected_indices()] == ["b", "d"]

    def test_remove_and_shift_drops_removed_index(self, store: GallerySelectionStore, recorder: _Recorder) -> None:
        store.toggle(2)
        store.toggle(4)

        store.remove_and_shift(2)

        assert store.selected_indices() == [3]
        assert recorder.counts == [1, 2, 1]

    def test_remove_and_shift_out_of_range_is_noop(self, store: GallerySelectionStore, recorder: _Recorder) -> None:
        store.remove_and_shift(-1)
        assert store.size == 5
        assert recorder.counts == []
