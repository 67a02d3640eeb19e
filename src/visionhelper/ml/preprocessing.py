"""Image preprocessing for the MobileNet classifiers.

Decodes uploaded bytes with Pillow, applies EXIF orientation, converts to
RGB, validates size limits, and produces the 1x3xHxW float32 tensor the
ONNX exports expect (pixel values scaled to [-1, 1]).
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

if TYPE_CHECKING:
    from numpy.typing import NDArray

MOBILENET_MEAN: float = 0.5
MOBILENET_STD: float = 0.5


def decode_image(image_bytes: bytes, max_pixels: int) -> Image.Image:
    """Decode raw image bytes into an RGB Pillow image.

    Raises:
        ValueError: If the bytes are not a readable image or the image
            exceeds ``max_pixels``.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            width, height = img.size
            if width * height > max_pixels:
                raise ValueError(f"Image too large: {width}x{height} exceeds {max_pixels} pixels")
            img.load()
            oriented = ImageOps.exif_transpose(img)
            return oriented.convert("RGB")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise ValueError(f"Could not decode image: {exc}") from exc


def to_tensor(image: Image.Image, input_size: int = 224) -> NDArray[np.float32]:
    """Resize an RGB image and convert it to a normalized NCHW tensor."""
    resized = image.resize((input_size, input_size), resample=Image.Resampling.BILINEAR)
    pixels = np.asarray(resized, dtype=np.float32) / 255.0
    pixels = (pixels - MOBILENET_MEAN) / MOBILENET_STD
    return np.ascontiguousarray(pixels.transpose(2, 0, 1)[np.newaxis, ...])


def encode_jpeg(image: Image.Image, quality: int = 90, description: str | None = None) -> bytes:
    """Encode an image as JPEG, optionally tagging an EXIF ImageDescription."""
    exif = Image.Exif()
    if description:
        exif[0x010E] = description
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality, exif=exif.tobytes())
    return buffer.getvalue()
