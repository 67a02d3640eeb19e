"""Filesystem persistence for captured images.

Captures live as JPEG files in a single gallery directory. The detection label
is recovered from each filename; the capture time is the file's modification
time, as it was for the legacy on-device store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from visionhelper.gallery.collection import GalleryCollection, GalleryItem
from visionhelper.gallery.filenames import is_capture_filename, label_from_filename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save; ``identity`` is None when the write failed."""

    saved: bool
    identity: str | None = None


class LocalGallery:
    """Saves, enumerates, and deletes captures in one directory."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def save(self, image_data: bytes, filename: str, description: str = "") -> SaveResult:
        """Write encoded image bytes under ``filename``.

        ``description`` is only logged here; callers embed it in the image
        metadata before handing the bytes over.
        """
        path = self._directory / filename
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(image_data)
        except OSError as exc:
            logger.error("Error saving image %s: %s", path, exc)
            return SaveResult(saved=False)
        logger.info("Image saved: %s (%s)", path, description or "no description")
        return SaveResult(saved=True, identity=str(path))

    def scan(self) -> list[tuple[str, str, datetime]]:
        """List ``(identity, filename, modified_at)`` for capture files."""
        if not self._directory.is_dir():
            return []
        entries: list[tuple[str, str, datetime]] = []
        for path in self._directory.iterdir():
            if not path.is_file() or not is_capture_filename(path.name):
                continue
            try:
                modified = datetime.fromtimestamp(path.stat().st_mtime)
            except OSError as exc:
                logger.warning("Skipping unreadable gallery entry %s: %s", path, exc)
                continue
            entries.append((str(path), path.name, modified))
        return entries

    def load(self) -> GalleryCollection:
        """Current captures, newest first. Unparseable names get label ``Unknown``."""
        items = [
            GalleryItem(
                identity=identity,
                filename=filename,
                detection_label=label_from_filename(filename),
                captured_at=modified,
            )
            for identity, filename, modified in self.scan()
        ]
        return GalleryCollection.newest_first(items)

    def delete(self, identity: str) -> bool:
        """Delete a capture by identity. Returns False if nothing was removed."""
        path = Path(identity)
        if path.parent.resolve() != self._directory.resolve():
            logger.warning("Refusing to delete %s outside gallery directory", identity)
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.error("Error deleting %s: %s", identity, exc)
            return False
        logger.info("Deleted %s", identity)
        return True

    def find(self, filename: str) -> str | None:
        """Identity for ``filename`` if it is a capture in this gallery."""
        if Path(filename).name != filename or not is_capture_filename(filename):
            return None
        path = self._directory / filename
        return str(path) if path.is_file() else None
