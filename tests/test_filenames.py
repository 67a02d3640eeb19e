"""Tests for capture filename encoding and decoding."""

from __future__ import annotations

from datetime import datetime

import pytest

from visionhelper.gallery.filenames import (
    UNKNOWN_LABEL,
    decode_filename,
    encode_filename,
    is_capture_filename,
    label_from_filename,
    report_filename,
)

TS = datetime(2024, 1, 15, 9, 30, 5)


class TestEncode:
    def test_canonical_name(self) -> None:
        assert encode_filename("red car", TS) == "VisionHelper_red_car_20240115_093005.jpg"

    def test_single_word(self) -> None:
        assert encode_filename("cat", TS) == "VisionHelper_cat_20240115_093005.jpg"


class TestDecode:
    def test_round_trip(self) -> None:
        decoded = decode_filename(encode_filename("red car", TS))
        assert decoded is not None
        assert decoded.label == "red car"
        assert decoded.timestamp == TS

    def test_underscores_become_spaces(self) -> None:
        decoded = decode_filename("VisionHelper_great_white_shark_20231231_235959.jpg")
        assert decoded is not None
        assert decoded.label == "great white shark"

    @pytest.mark.parametrize(
        "name",
        [
            "IMG_20240115_093005.jpg",
            "VisionHelper_cat_2024011_093005.jpg",
            "VisionHelper_cat_20240115_093005.png",
            "VisionHelper__20240115_093005.jpg",
            "VisionHelper_Performance_20240115_093005.txt",
            "",
        ],
    )
    def test_non_matching_names(self, name: str) -> None:
        assert decode_filename(name) is None
        assert label_from_filename(name) == UNKNOWN_LABEL

    def test_impossible_date_is_unresolved(self) -> None:
        assert decode_filename("VisionHelper_cat_20241345_093005.jpg") is None

    def test_label_with_underscore_does_not_round_trip(self) -> None:
        decoded = decode_filename(encode_filename("snake_case", TS))
        assert decoded is not None
        assert decoded.label == "snake case"


class TestHelpers:
    def test_capture_filter(self) -> None:
        assert is_capture_filename("VisionHelper_cat_20240115_093005.jpg")
        assert not is_capture_filename("VisionHelper_Performance_20240115_093005.txt")
        assert not is_capture_filename("holiday.jpg")

    def test_report_filename(self) -> None:
        assert report_filename(TS) == "VisionHelper_Performance_20240115_093005.txt"
