"""Tests for the label to explanation/suggestion table."""
from __future__ import annotations

import pytest

from melanoscan.services.classifier import CLASS_NAMES
from melanoscan.services.diagnosis import DIAGNOSES, UNKNOWN_DIAGNOSIS, explain


@pytest.mark.parametrize(
    ("label", "explanation", "suggestion"),
    [
        ("MEL", "Melanoma", "Seek immediate medical attention as melanoma can be a serious form of skin cancer."),
        (
            "NV",
            "Melanocytic Nevus",
            "Observe your moles for changes in size, shape, or color. If there are any changes, consult a doctor immediately.",
        ),
        ("BCC", "Basal Cell Carcinoma", "Have regular skin checks to detect the possibility of new or recurrent cancers."),
        (
            "BKL",
            "Benign Keratosis",
            "Although usually harmless, it is advisable to see a dermatologist to confirm the diagnosis "
            "and make sure there are no more serious conditions.",
        ),
    ],
)
def test_known_labels(label, explanation, suggestion):
    diagnosis = explain(label)
    assert diagnosis.explanation == explanation
    assert diagnosis.suggestion == suggestion


@pytest.mark.parametrize("label", ["", "mel", "SCC", "unknown"])
def test_unknown_labels_get_default(label):
    diagnosis = explain(label)
    assert diagnosis == UNKNOWN_DIAGNOSIS
    assert diagnosis.explanation == "No explanation available"
    assert diagnosis.suggestion == ""


def test_table_covers_every_class_and_is_stable():
    assert set(DIAGNOSES) == set(CLASS_NAMES)
    for label in CLASS_NAMES:
        assert explain(label) == explain(label)


def test_table_is_read_only():
    with pytest.raises(TypeError):
        DIAGNOSES["MEL"] = UNKNOWN_DIAGNOSIS  # type: ignore[index]
