"""Inference timing collection and report export."""

from __future__ import annotations

import logging
import platform
import threading
import time
from collections import deque
from datetime import datetime
from pathlib import Path

import numpy as np

from visionhelper.gallery.filenames import report_filename
from visionhelper.reports.report import PerformanceMetrics

logger = logging.getLogger(__name__)


def describe_device() -> str:
    """Host description in the spirit of ``<manufacturer> <model>``."""
    parts = [platform.node() or "unknown-host", platform.machine() or "unknown-arch"]
    return " ".join(parts)


def describe_os() -> str:
    return f"{platform.system()} {platform.release()}".strip() or "unknown"


class PerformanceTracker:
    """Sliding window of inference durations and completion times.

    FPS is measured over completion timestamps in the window, so it reflects
    end-to-end throughput rather than ``1000 / inference_ms``.
    """

    def __init__(self, model_name: str, window: int = 30) -> None:
        self.model_name = model_name
        self._durations_ms: deque[float] = deque(maxlen=window)
        self._timestamps: deque[float] = deque(maxlen=window)
        self._lock = threading.Lock()

    def record(self, duration_ms: float, timestamp: float | None = None) -> None:
        with self._lock:
            self._durations_ms.append(duration_ms)
            self._timestamps.append(time.perf_counter() if timestamp is None else timestamp)

    @property
    def sample_count(self) -> int:
        with self._lock:
            return len(self._durations_ms)

    def average_inference_ms(self) -> float:
        with self._lock:
            if not self._durations_ms:
                return 0.0
            return float(np.mean(self._durations_ms))

    def frames_per_second(self) -> float:
        """Throughput over the window; 0.0 until two frames have completed."""
        with self._lock:
            if len(self._timestamps) < 2:
                return 0.0
            elapsed = self._timestamps[-1] - self._timestamps[0]
            return (len(self._timestamps) - 1) / elapsed if elapsed > 0 else 0.0

    def snapshot(self) -> PerformanceMetrics:
        return PerformanceMetrics(
            device_info=describe_device(),
            os_version=describe_os(),
            model_name=self.model_name,
            average_inference_time_ms=round(self.average_inference_ms()),
            frames_per_second=self.frames_per_second(),
        )

    def reset(self) -> None:
        with self._lock:
            self._durations_ms.clear()
            self._timestamps.clear()


def export_report(content: str, directory: str | Path, now: datetime | None = None) -> str | None:
    """Write report text to ``VisionHelper_Performance_<timestamp>.txt``.

    Returns the absolute path, or None if the file could not be written.
    """
    path = Path(directory) / report_filename(now or datetime.now())
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.error("Error exporting report to %s: %s", path, exc)
        return None
    logger.info("Report exported to %s", path)
    return str(path.resolve())
