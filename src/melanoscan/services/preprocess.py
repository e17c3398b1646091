"""Upload validation and image decoding for the lesion classifier."""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import torch
from PIL import Image, UnidentifiedImageError

from ..exceptions import DecodeError, ShapeMismatchError, ValidationError


@dataclass(frozen=True, slots=True)
class ImageUpload:
    data: bytes
    content_type: str
    filename: str


def validate_upload(content_type: Optional[str], size: int, max_bytes: int) -> None:
    """Reject non-image MIME types and oversized payloads before decoding."""
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed")
    if size > max_bytes:
        raise ValidationError("File too large")


def decode_image(image_bytes: bytes, expected_shape: Optional[Sequence[int]] = None) -> torch.Tensor:
    """Decode raw bytes into a (1, H, W, 3) float tensor scaled to [0, 1].

    The image keeps its native resolution. When ``expected_shape`` is given,
    the header dimensions are compared against it before any pixel data is
    decoded.
    """
    if not image_bytes:
        raise DecodeError("empty image payload")
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            if expected_shape is not None:
                actual = (image.height, image.width, 3)
                if actual != tuple(expected_shape):
                    raise ShapeMismatchError(tuple(expected_shape), actual)
            image.load()
            if image.mode != "RGB":
                image = image.convert("RGB")
            pixels = np.asarray(image, dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"Unable to decode image: {exc}") from exc
    tensor = torch.from_numpy(pixels.copy()).unsqueeze(0)
    return tensor.float().div(255.0)
