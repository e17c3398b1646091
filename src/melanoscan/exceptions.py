"""Error taxonomy for the scan pipeline."""
from __future__ import annotations


class MelanoScanError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MelanoScanError):
    """Missing or invalid caller input."""

    status_code = 400


class ModelUnavailable(MelanoScanError):
    """The classifier is not loaded (still loading, or the load failed)."""


class DecodeError(MelanoScanError):
    """Image bytes could not be turned into a tensor."""


class ShapeMismatchError(DecodeError):
    def __init__(self, expected: tuple, actual: tuple) -> None:
        super().__init__(f"expected input shape {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class InferenceError(MelanoScanError):
    """Model execution failed."""


class StorageError(MelanoScanError):
    """Object store or document store failure."""


class NotFound(MelanoScanError):
    status_code = 404
