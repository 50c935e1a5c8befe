"""Image codec for mosaic pixel buffers (Pillow)."""

import logging
from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image

from .exceptions import ImageSaveError

logger = logging.getLogger(__name__)


def _check_buffer(buffer) -> np.ndarray:
    arr = np.asarray(buffer)
    if arr.ndim != 3 or arr.shape[2] != 3 or arr.dtype != np.uint8:
        raise ValueError(f"expected a (height, width, 3) uint8 buffer, got {arr.shape} {arr.dtype}")
    return np.ascontiguousarray(arr)


def to_image(buffer) -> Image.Image:
    """(H,W,3) uint8 sRGB buffer -> RGB PIL image."""
    return Image.fromarray(_check_buffer(buffer))


def encode_png(buffer) -> bytes:
    out = BytesIO()
    try:
        to_image(buffer).save(out, format="PNG")
    except (OSError, ValueError) as e:
        raise ImageSaveError("<memory>", str(e)) from e
    return out.getvalue()


def save_image(buffer, path) -> Path:
    """Write the buffer to path; the format follows the file extension.

    Raises:
        ImageSaveError: If the buffer cannot be encoded or the file cannot be written
    """
    path = Path(path)
    try:
        to_image(buffer).save(path)
    except (OSError, ValueError) as e:
        raise ImageSaveError(str(path), str(e)) from e

    logger.info("Image saved: path=%s size=%dx%d", path, np.shape(buffer)[1], np.shape(buffer)[0])
    return path
