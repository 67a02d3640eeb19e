"""Tests for gallery storage, collection ordering, and delete flows."""

from __future__ import annotations

import os
from datetime import datetime
from typing import TYPE_CHECKING

import pytest

from visionhelper.gallery.collection import GalleryCollection, GalleryItem
from visionhelper.gallery.session import DeleteOutcome, GallerySession
from visionhelper.gallery.storage import LocalGallery

if TYPE_CHECKING:
    from pathlib import Path


def _write_capture(directory: Path, name: str, mtime: float) -> Path:
    path = directory / name
    path.write_bytes(b"\xff\xd8jpeg")
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture()
def gallery_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "VisionHelper"
    directory.mkdir()
    _write_capture(directory, "VisionHelper_cat_20240101_100000.jpg", 1_700_000_100)
    _write_capture(directory, "VisionHelper_red_car_20240102_100000.jpg", 1_700_000_300)
    _write_capture(directory, "VisionHelper_weird.jpg", 1_700_000_200)
    _write_capture(directory, "holiday.jpg", 1_700_000_400)
    (directory / "VisionHelper_Performance_20240101_100000.txt").write_text("report")
    return directory


class TestLocalGallery:
    def test_load_is_newest_first_and_filtered(self, gallery_dir: Path) -> None:
        items = LocalGallery(gallery_dir).load()
        assert [i.filename for i in items] == [
            "VisionHelper_red_car_20240102_100000.jpg",
            "VisionHelper_weird.jpg",
            "VisionHelper_cat_20240101_100000.jpg",
        ]

    def test_labels_decoded_from_filenames(self, gallery_dir: Path) -> None:
        labels = [i.detection_label for i in LocalGallery(gallery_dir).load()]
        assert labels == ["red car", "Unknown", "cat"]

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        assert len(LocalGallery(tmp_path / "nope").load()) == 0

    def test_save_creates_directory(self, tmp_path: Path) -> None:
        gallery = LocalGallery(tmp_path / "new" / "VisionHelper")
        result = gallery.save(b"data", "VisionHelper_cat_20240101_100000.jpg", "Object detected: cat")
        assert result.saved is True
        assert result.identity is not None
        assert (tmp_path / "new" / "VisionHelper" / "VisionHelper_cat_20240101_100000.jpg").read_bytes() == b"data"

    def test_save_failure_is_reported(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        result = LocalGallery(blocker).save(b"data", "VisionHelper_cat_20240101_100000.jpg")
        assert result.saved is False
        assert result.identity is None

    def test_delete(self, gallery_dir: Path) -> None:
        gallery = LocalGallery(gallery_dir)
        identity = str(gallery_dir / "VisionHelper_cat_20240101_100000.jpg")
        assert gallery.delete(identity) is True
        assert gallery.delete(identity) is False

    def test_delete_outside_directory_refused(self, gallery_dir: Path, tmp_path: Path) -> None:
        outsider = tmp_path / "VisionHelper_cat_20240101_100000.jpg"
        outsider.write_bytes(b"x")
        assert LocalGallery(gallery_dir).delete(str(outsider)) is False
        assert outsider.exists()

    def test_find_rejects_paths_and_foreign_files(self, gallery_dir: Path) -> None:
        gallery = LocalGallery(gallery_dir)
        assert gallery.find("VisionHelper_cat_20240101_100000.jpg") is not None
        assert gallery.find("holiday.jpg") is None
        assert gallery.find("../VisionHelper_cat_20240101_100000.jpg") is None
        assert gallery.find("VisionHelper_dog_20240101_100000.jpg") is None


class TestGalleryCollection:
    def _item(self, name: str, day: int) -> GalleryItem:
        return GalleryItem(identity=f"/g/{name}", filename=name, detection_label=name, captured_at=datetime(2024, 1, day))

    def test_newest_first_deduplicates_by_identity(self) -> None:
        a, b = self._item("a", 1), self._item("b", 2)
        collection = GalleryCollection.newest_first([a, b, a])
        assert list(collection) == [b, a]

    def test_without_returns_new_collection(self) -> None:
        collection = GalleryCollection([self._item("a", 1), self._item("b", 2)])
        smaller = collection.without(0)
        assert len(collection) == 2
        assert [i.filename for i in smaller] == ["b"]

    def test_without_out_of_range(self) -> None:
        with pytest.raises(IndexError):
            GalleryCollection().without(0)

    def test_index_of(self) -> None:
        collection = GalleryCollection([self._item("a", 1), self._item("b", 2)])
        assert collection.index_of("/g/b") == 1
        assert collection.index_of("/g/zzz") == -1


class TestGallerySession:
    def test_refresh_resets_selection(self, gallery_dir: Path) -> None:
        session = GallerySession(LocalGallery(gallery_dir))
        session.refresh()
        session.selection.select_all()

        session.refresh()

        assert session.selection.size == 3
        assert session.selection.count == 0

    def test_delete_selected_removes_only_selected(self, gallery_dir: Path) -> None:
        session = GallerySession(LocalGallery(gallery_dir))
        session.refresh()
        session.selection.set_selection_mode(True)
        session.selection.toggle(0)
        session.selection.toggle(2)

        outcome = session.delete_selected()

        assert outcome == DeleteOutcome(deleted=2, failed=0)
        assert outcome.message == "2 items deleted"
        assert [i.filename for i in session.items] == ["VisionHelper_weird.jpg"]
        assert not (gallery_dir / "VisionHelper_red_car_20240102_100000.jpg").exists()
        assert not (gallery_dir / "VisionHelper_cat_20240101_100000.jpg").exists()
        assert session.selection.selection_mode is False
        assert session.selection.count == 0

    def test_delete_selected_counts_failures(self, gallery_dir: Path) -> None:
        session = GallerySession(LocalGallery(gallery_dir))
        session.refresh()
        (gallery_dir / "VisionHelper_cat_20240101_100000.jpg").unlink()
        session.selection.select_all()

        outcome = session.delete_selected()

        assert outcome == DeleteOutcome(deleted=2, failed=1)
        assert outcome.message == "2 deleted, 1 failed"
        assert len(session.items) == 1

    def test_delete_at(self, gallery_dir: Path) -> None:
        session = GallerySession(LocalGallery(gallery_dir))
        session.refresh()
        assert session.delete_at(1) is True
        assert session.delete_at(5) is False
        assert len(session.items) == 2
        assert session.selection.size == 2

    def test_outcome_messages(self) -> None:
        assert DeleteOutcome(deleted=0, failed=3).message == "Failed to delete items"

    def test_single_delete_keeps_selection_on_same_captures(self, gallery_dir: Path) -> None:
        session = GallerySession(LocalGallery(gallery_dir))
        session.refresh()
        session.selection.set_selection_mode(True)
        session.selection.toggle(2)

        assert session.delete_at(0) is True
        assert session.selection.selected_indices() == [1]

        outcome = session.delete_selected()

        assert outcome == DeleteOutcome(deleted=1, failed=0)
        assert [i.filename for i in session.items] == ["VisionHelper_weird.jpg"]
        assert not (gallery_dir / "VisionHelper_cat_20240101_100000.jpg").exists()

    def test_deleting_a_selected_capture_drops_it_from_selection(self, gallery_dir: Path) -> None:
        session = GallerySession(LocalGallery(gallery_dir))
        session.refresh()
        session.selection.toggle(1)
        session.selection.toggle(2)

        session.delete_identity(str(gallery_dir / "VisionHelper_weird.jpg"))

        assert session.selection.size == 2
        assert session.selection.selected_indices() == [1]
        assert session.items[1].filename == "VisionHelper_cat_20240101_100000.jpg"
