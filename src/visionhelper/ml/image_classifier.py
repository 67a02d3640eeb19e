"""Image classification over ONNX MobileNet models.

The classifier returns raw ``(token, score)`` categories in descending score
order. Tokens are class indices rendered as strings; turning them into
readable labels is the job of :mod:`visionhelper.ml.labels`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from visionhelper.ml.model_manager import ModelManager

logger = logging.getLogger(__name__)


class ClassificationError(RuntimeError):
    """Classification could not produce a result."""


class ModelUnavailableError(ClassificationError):
    """The classifier model could not be downloaded or loaded."""


class InferenceFailedError(ClassificationError):
    """The loaded model rejected the input or failed while running."""


@dataclass(frozen=True)
class RawCategory:
    """A single classifier category before label resolution."""

    token: str
    score: float


class ImageClassifier(Protocol):
    """Protocol for image classification models."""

    @property
    def model_name(self) -> str:
        """Return the model identifier string."""
        ...

    def classify(self, tensor: NDArray[np.float32]) -> list[RawCategory]:
        """Classify a preprocessed image tensor.

        Args:
            tensor: 1x3xHxW float32 array produced by the preprocessor.

        Returns:
            Categories sorted by score (descending).
        """
        ...


def softmax(logits: NDArray[np.float32]) -> NDArray[np.float32]:
    shifted = logits - np.max(logits)
    exp = np.exp(shifted)
    return exp / np.sum(exp)


class OnnxImageClassifier:
    """Runs a single-input ONNX classifier and keeps the best categories.

    The session is fetched from the model manager on every call so idle
    eviction and lazy loading stay in one place.
    """

    def __init__(
        self,
        model_manager: ModelManager,
        model_name: str,
        max_results: int = 3,
        score_threshold: float = 0.3,
    ) -> None:
        self._model_manager = model_manager
        self._model_name = model_name
        self._max_results = max_results
        self._score_threshold = score_threshold

    @property
    def model_name(self) -> str:
        return self._model_name

    def classify(self, tensor: NDArray[np.float32]) -> list[RawCategory]:
        try:
            session = self._model_manager.get_session(self._model_name)
        except KeyError:
            raise
        except Exception as exc:  # noqa: BLE001 - hub and runtime errors share no base class
            logger.error("Error loading model %s: %s", self._model_name, exc)
            raise ModelUnavailableError(f"Model '{self._model_name}' is unavailable") from exc

        try:
            input_name = session.get_inputs()[0].name
            outputs = session.run(None, {input_name: tensor})
        except Exception as exc:  # noqa: BLE001 - onnxruntime raises its own pybind error types
            logger.error("Error running model %s: %s", self._model_name, exc)
            raise InferenceFailedError(f"Inference failed: {exc}") from exc

        scores = np.asarray(outputs[0], dtype=np.float32).reshape(-1)
        if scores.size == 0:
            return []

        # Both float and quantized exports emit logits.
        probabilities = softmax(scores)
        order = np.argsort(probabilities)[::-1][: self._max_results]
        return [
            RawCategory(token=str(int(index)), score=float(probabilities[index]))
            for index in order
            if probabilities[index] >= self._score_threshold
        ]
