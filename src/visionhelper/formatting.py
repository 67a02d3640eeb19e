"""Display formatting for detection results and gallery cards."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from visionhelper.ml.detection import DetectionResult

BACKGROUND_LABEL = "background"
NO_OBJECTS_PREFIX = "No objects"
NO_OBJECTS_TEXT = "No objects detected"
NO_SIGNIFICANT_OBJECTS_TEXT = "No significant objects detected"
DETECTED_HEADER = "Detected:\n"


@dataclass(frozen=True)
class DisplayEntry:
    """One row of the ranked detection list."""

    label: str
    confidence_text: str


@dataclass(frozen=True)
class FormattedResults:
    """Display-ready view of a list of detection results."""

    summary_text: str
    top_label: str | None = None
    top_confidence: float | None = None
    ranked_display: list[DisplayEntry] = field(default_factory=list)


def capitalize_first(word: str) -> str:
    """Upper-case the first character only when it is lowercase."""
    if word and word[0].islower():
        return word[0].upper() + word[1:]
    return word


def title_case_words(label: str) -> str:
    return " ".join(capitalize_first(word) for word in label.split(" "))


def format_confidence(score: float, decimals: int = 1) -> str:
    return f"{score * 100:.{decimals}f}%"


def is_background(result: DetectionResult) -> bool:
    return result.label.casefold() == BACKGROUND_LABEL


def is_empty_detection(results: Sequence[DetectionResult]) -> bool:
    """True for no results or the single ``No objects ...`` sentinel."""
    return not results or (len(results) == 1 and results[0].label.startswith(NO_OBJECTS_PREFIX))


def format_results(results: Sequence[DetectionResult]) -> FormattedResults:
    """Turn classifier-ordered results into display text.

    Background entries are skipped for display but never re-ordered; the top
    label is the first eligible entry, not the highest score.
    """
    if is_empty_detection(results):
        return FormattedResults(summary_text=NO_OBJECTS_TEXT)

    ranked = [
        DisplayEntry(label=title_case_words(r.label), confidence_text=format_confidence(r.confidence))
        for r in results
        if not is_background(r)
    ]
    if not ranked:
        return FormattedResults(summary_text=NO_SIGNIFICANT_OBJECTS_TEXT)

    top = next(r for r in results if not is_background(r))
    summary = DETECTED_HEADER + "".join(f"• {e.label}: {e.confidence_text}\n" for e in ranked)
    return FormattedResults(
        summary_text=summary,
        top_label=ranked[0].label,
        top_confidence=top.confidence,
        ranked_display=ranked,
    )


def box_label(formatted: FormattedResults) -> str | None:
    """Short overlay caption such as ``Tabby Cat: 87%``; None while analyzing."""
    if formatted.top_label is None or formatted.top_confidence is None:
        return None
    return f"{formatted.top_label}: {format_confidence(formatted.top_confidence, decimals=0)}"


def gallery_caption(detection_label: str) -> str:
    # Gallery cards only capitalize the first letter of the whole label.
    return capitalize_first(detection_label)


def gallery_date(captured_at: datetime) -> str:
    return f"{captured_at:%b} {captured_at.day}, {captured_at.year}"
