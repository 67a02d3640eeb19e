"""Plain-text performance report."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

BANNER = "=" * 38
RULE = "-" * 38
TITLE = "       VISIONHELPER PERFORMANCE REPORT"


@dataclass(frozen=True)
class PerformanceMetrics:
    """Snapshot of device, model, and speed figures for one report."""

    device_info: str
    os_version: str
    model_name: str
    average_inference_time_ms: int
    frames_per_second: float


def _section(title: str, *lines: str) -> list[str]:
    return [title, RULE, *lines, ""]


def build_report(metrics: PerformanceMetrics, notes: str = "", generated_at: datetime | None = None) -> str:
    """Render the report text. The notes section is omitted when ``notes`` is empty."""
    generated_at = generated_at or datetime.now()

    lines = [BANNER, TITLE, BANNER, ""]
    lines += _section("DEVICE INFORMATION", f"Device: {metrics.device_info}", f"OS: {metrics.os_version}")
    lines += _section("MODEL INFORMATION", f"Model: {metrics.model_name}")
    lines += _section(
        "PERFORMANCE METRICS",
        f"Average Inference Time: {metrics.average_inference_time_ms} ms",
        f"Frames Per Second: {metrics.frames_per_second:.1f} FPS",
    )
    if notes:
        lines += _section("ADDITIONAL NOTES", notes)
    lines += [f"Report generated: {generated_at:%Y-%m-%d %H:%M:%S}", BANNER]
    return "\n".join(lines) + "\n"
