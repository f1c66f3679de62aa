"""Image preprocessing: decoding and conversion to the model input tensor.

The encoder scales an image to ``side x side`` with nearest-neighbour
sampling, walks the scaled pixels row by row, and emits each pixel's R, G
and B channels normalized as ``(c - 128) / 128``.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image, UnidentifiedImageError

from photolabel.errors import InvalidImageError

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

IMAGE_MEAN = 128
IMAGE_STD = 128.0
PIXEL_SIZE = 3


def decode_image(image_bytes: bytes, *, max_pixels: int | None = None) -> Image.Image:
    """Decode raw image bytes into an RGB Pillow image.

    Args:
        image_bytes: Raw file bytes (any format Pillow can read).
        max_pixels: Optional upper bound on width * height.

    Raises:
        InvalidImageError: If the bytes cannot be decoded or the image is
            larger than ``max_pixels``.
    """
    if not image_bytes:
        raise InvalidImageError("Image data is empty")
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            width, height = img.size
            if max_pixels is not None and width * height > max_pixels:
                raise InvalidImageError(f"Image has {width * height} pixels, limit is {max_pixels}")
            return img.convert("RGB")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise InvalidImageError(f"Cannot decode image: {exc}") from exc


def to_argb(image: Image.Image | NDArray[np.generic]) -> NDArray[np.uint32]:
    """Pack an image into an HxW grid of 32-bit ARGB values.

    Accepts a Pillow image, an HxWx3 (RGB) or HxWx4 (RGBA) uint8 array, or
    an HxW uint32 array that is already packed ARGB.
    """
    if isinstance(image, Image.Image):
        arr = np.asarray(image.convert("RGBA"))
    else:
        arr = np.asarray(image)

    if arr.ndim == 2:
        if arr.dtype != np.uint32:
            raise InvalidImageError(f"Packed pixels must be uint32, got {arr.dtype}")
        _check_not_empty(arr.shape[0], arr.shape[1])
        return arr

    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise InvalidImageError(f"Expected HxWx3 or HxWx4 pixels, got shape {arr.shape}")
    if arr.dtype != np.uint8:
        raise InvalidImageError(f"Channel values must be uint8, got {arr.dtype}")
    _check_not_empty(arr.shape[0], arr.shape[1])

    channels = arr.astype(np.uint32)
    alpha = channels[..., 3] if arr.shape[2] == 4 else np.uint32(0xFF)
    return (alpha << 24) | (channels[..., 0] << 16) | (channels[..., 1] << 8) | channels[..., 2]


def scale_nearest(pixels: NDArray[np.uint32], side: int) -> NDArray[np.uint32]:
    """Resample a packed pixel grid to ``side x side`` without filtering."""
    _check_side(side)
    height, width = pixels.shape
    _check_not_empty(height, width)
    # Each destination pixel takes the source pixel under its centre.
    rows = ((np.arange(side) + 0.5) * height / side).astype(np.intp)
    cols = ((np.arange(side) + 0.5) * width / side).astype(np.intp)
    return pixels[np.ix_(rows, cols)]


def encode(image: Image.Image | NDArray[np.generic], side: int) -> NDArray[np.float32]:
    """Convert an image into the flat float32 input tensor.

    Returns:
        Array of length ``side * side * 3``: pixels row by row, each as
        normalized R, G, B.

    Raises:
        InvalidImageError: If the image is empty or malformed, or ``side``
            is not positive.
    """
    _check_side(side)
    scaled = scale_nearest(to_argb(image), side)
    logger.debug("Layout Size:(%d %d) ---- %d", scaled.shape[1], scaled.shape[0], side * side)

    flat = scaled.reshape(-1)
    rgb = np.empty((flat.size, PIXEL_SIZE), dtype=np.float32)
    rgb[:, 0] = (flat >> 16) & 0xFF
    rgb[:, 1] = (flat >> 8) & 0xFF
    rgb[:, 2] = flat & 0xFF
    return ((rgb - np.float32(IMAGE_MEAN)) / np.float32(IMAGE_STD)).reshape(-1)


def encode_bytes(image: Image.Image | NDArray[np.generic], side: int) -> bytes:
    """Encode an image and serialize the tensor in native byte order."""
    return encode(image, side).tobytes()


def _check_side(side: int) -> None:
    if isinstance(side, bool) or not isinstance(side, int) or side <= 0:
        raise InvalidImageError(f"Side must be a positive integer, got {side!r}")


def _check_not_empty(height: int, width: int) -> None:
    if height == 0 or width == 0:
        raise InvalidImageError(f"Image has zero size ({width}x{height})")
