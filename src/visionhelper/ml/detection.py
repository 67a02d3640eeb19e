"""Detection pipeline: raw classifier categories to labelled results."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from visionhelper.ml.labels import resolve_label

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np
    from numpy.typing import NDArray

    from visionhelper.ml.image_classifier import ImageClassifier, RawCategory

logger = logging.getLogger(__name__)

NO_OBJECTS_LABEL = "No objects detected"


@dataclass(frozen=True)
class DetectionResult:
    """A resolved label paired with its raw model score."""

    label: str
    confidence: float


NO_OBJECTS: tuple[DetectionResult, ...] = (DetectionResult(NO_OBJECTS_LABEL, 0.0),)


def to_detection_results(categories: Sequence[RawCategory], table: Sequence[str]) -> list[DetectionResult]:
    """Resolve categories against a label table, keeping classifier order.

    An empty category list becomes the single ``No objects detected`` sentinel.
    """
    if not categories:
        return list(NO_OBJECTS)
    return [DetectionResult(label=resolve_label(c.token, table), confidence=c.score) for c in categories]


class DetectionService:
    """Classifies preprocessed tensors and resolves their labels."""

    def __init__(self, classifier: ImageClassifier, labels: Sequence[str]) -> None:
        self._classifier = classifier
        self._labels = labels

    @property
    def model_name(self) -> str:
        return self._classifier.model_name

    @property
    def label_count(self) -> int:
        return len(self._labels)

    def detect(self, tensor: NDArray[np.float32]) -> list[DetectionResult]:
        """Run the classifier and return results in classifier order."""
        categories = self._classifier.classify(tensor)
        results = to_detection_results(categories, self._labels)
        logger.debug("Detections: %s", results)
        return results
