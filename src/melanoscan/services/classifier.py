"""Arg-max classification over the lesion model's score vector."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np
import torch

from ..exceptions import InferenceError

if TYPE_CHECKING:
    from .model_loader import LesionModel

# Output order of the trained network.
CLASS_NAMES = ("MEL", "NV", "BCC", "BKL")


@dataclass(frozen=True, slots=True)
class Prediction:
    label: str
    confidence: float


def prediction_from_scores(
    scores: np.ndarray | torch.Tensor | Sequence[float],
    labels: Sequence[str] = CLASS_NAMES,
) -> Prediction:
    """Pick the highest score; ties resolve to the lowest index."""
    if isinstance(scores, torch.Tensor):
        scores = scores.detach().cpu().numpy()
    vector = np.asarray(scores, dtype=np.float64).reshape(-1)
    if vector.size != len(labels):
        raise InferenceError(f"expected {len(labels)} class scores, got {vector.size}")
    if not np.all(np.isfinite(vector)):
        raise InferenceError("model returned non-finite scores")
    index = int(np.argmax(vector))
    if index >= len(labels):
        raise InferenceError(f"class index {index} is outside the mapped classes")
    return Prediction(label=labels[index], confidence=float(vector[index]))


def classify(model: Optional["LesionModel"], tensor: torch.Tensor) -> Prediction:
    if model is None:
        raise InferenceError("model is not loaded")
    try:
        scores = model.predict(tensor)
    except Exception as exc:
        raise InferenceError(f"Input error: {exc}") from exc
    return prediction_from_scores(scores, labels=model.class_names)
