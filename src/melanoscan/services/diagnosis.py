"""Static explanation and suggestion text for each lesion class."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from .classifier import CLASS_NAMES


@dataclass(frozen=True, slots=True)
class Diagnosis:
    explanation: str
    suggestion: str


UNKNOWN_DIAGNOSIS = Diagnosis(explanation="No explanation available", suggestion="")

DIAGNOSES = MappingProxyType(
    {
        "MEL": Diagnosis(
            explanation="Melanoma",
            suggestion="Seek immediate medical attention as melanoma can be a serious form of skin cancer.",
        ),
        "NV": Diagnosis(
            explanation="Melanocytic Nevus",
            suggestion=(
                "Observe your moles for changes in size, shape, or color. "
                "If there are any changes, consult a doctor immediately."
            ),
        ),
        "BCC": Diagnosis(
            explanation="Basal Cell Carcinoma",
            suggestion="Have regular skin checks to detect the possibility of new or recurrent cancers.",
        ),
        "BKL": Diagnosis(
            explanation="Benign Keratosis",
            suggestion=(
                "Although usually harmless, it is advisable to see a dermatologist to confirm "
                "the diagnosis and make sure there are no more serious conditions."
            ),
        ),
    }
)

_missing = set(CLASS_NAMES) - set(DIAGNOSES)
if _missing:
    raise RuntimeError(f"No diagnosis text for classes: {sorted(_missing)}")


def explain(label: str) -> Diagnosis:
    return DIAGNOSES.get(label, UNKNOWN_DIAGNOSIS)
