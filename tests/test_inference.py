"""Tests for the inference concurrency layer."""

from __future__ import annotations

import asyncio
import threading
from unittest.mock import patch

import pytest

from visionhelper.config import Settings
from visionhelper.ml.inference import InferencePool
from visionhelper.reports.metrics import PerformanceTracker


class TestInferencePool:
    async def test_run_returns_result_and_records_timing(self) -> None:
        tracker = PerformanceTracker("m")
        pool = InferencePool(Settings(max_concurrent=1), tracker=tracker)
        try:
            result = await pool.run(lambda x: x * 2, 21)
        finally:
            pool.shutdown()

        assert result == 42
        assert tracker.sample_count == 1
        assert pool.active_count == 0
        assert pool.queue_depth == 0

    async def test_times_out_when_slots_are_busy(self) -> None:
        pool = InferencePool(Settings(max_concurrent=1))
        release = threading.Event()
        try:
            busy = asyncio.create_task(pool.run(release.wait, 5))
            await asyncio.sleep(0.05)
            with patch("visionhelper.ml.inference.SEMAPHORE_TIMEOUT_SECONDS", 0.05), pytest.raises(TimeoutError):
                await pool.run(lambda: None)
            assert pool.queue_depth == 0
        finally:
            release.set()
            await busy
            pool.shutdown()

    async def test_failures_propagate_without_recording(self) -> None:
        tracker = PerformanceTracker("m")
        pool = InferencePool(Settings(max_concurrent=1), tracker=tracker)

        def boom() -> None:
            raise ValueError("bad tensor")

        try:
            with pytest.raises(ValueError, match="bad tensor"):
                await pool.run(boom)
        finally:
            pool.shutdown()
        assert tracker.sample_count == 0
        assert pool.active_count == 0
