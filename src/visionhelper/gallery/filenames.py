"""Capture and report file naming.

Saved captures are named ``VisionHelper_<Label_With_Underscores>_<yyyyMMdd>_<HHmmss>.jpg``.
The name is the only place the detection label is persisted, so the gallery
recovers it by decoding the filename.

Labels containing underscores, or digit runs shaped like the timestamp
(``"model 20240101 123456"``), do not survive a round trip.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

FILENAME_PREFIX = "VisionHelper_"
IMAGE_EXTENSION = ".jpg"
REPORT_PREFIX = "VisionHelper_Performance_"
REPORT_EXTENSION = ".txt"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
UNKNOWN_LABEL = "Unknown"

_CAPTURE_PATTERN = re.compile(r"VisionHelper_(.+?)_(\d{8}_\d{6})\.jpg")


@dataclass(frozen=True)
class DecodedFilename:
    label: str
    timestamp: datetime


def encode_filename(label: str, timestamp: datetime) -> str:
    """Build the capture filename for a detection label and capture time."""
    return f"{FILENAME_PREFIX}{label.replace(' ', '_')}_{timestamp.strftime(TIMESTAMP_FORMAT)}{IMAGE_EXTENSION}"


def decode_filename(filename: str) -> DecodedFilename | None:
    """Recover ``(label, timestamp)`` from a capture filename.

    Returns None when the name does not follow the capture pattern. Never
    raises.
    """
    match = _CAPTURE_PATTERN.search(filename)
    if match is None:
        return None
    try:
        timestamp = datetime.strptime(match.group(2), TIMESTAMP_FORMAT)
    except ValueError:
        # Pattern-shaped but not a real date, e.g. month 13.
        return None
    return DecodedFilename(label=match.group(1).replace("_", " "), timestamp=timestamp)


def label_from_filename(filename: str) -> str:
    decoded = decode_filename(filename)
    return decoded.label if decoded is not None else UNKNOWN_LABEL


def is_capture_filename(filename: str) -> bool:
    """Cheap prefix/suffix filter used when scanning the gallery directory."""
    return filename.startswith(FILENAME_PREFIX) and filename.endswith(IMAGE_EXTENSION)


def report_filename(timestamp: datetime) -> str:
    return f"{REPORT_PREFIX}{timestamp.strftime(TIMESTAMP_FORMAT)}{REPORT_EXTENSION}"
