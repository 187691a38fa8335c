"""Loading and saving of 8-bit RGBA PNG images."""

from __future__ import annotations

import enum
import os
from typing import Sequence, Tuple

import numpy as np
from PIL import Image

_SIXTEEN_BIT_GRAY = {"I", "I;16", "I;16B", "I;16L", "I;16N"}


class OriginLocation(enum.Enum):
    """Which image row comes first in pixel data."""

    LOWER_LEFT = "lower_left"
    UPPER_LEFT = "upper_left"


class PngError(Exception):
    """Raised when a PNG image cannot be read or written."""


def _to_rgba(img: Image.Image) -> np.ndarray:
    if img.mode in _SIXTEEN_BIT_GRAY:
        wide = np.asarray(img).astype(np.int64)
        img = Image.fromarray((np.clip(wide, 0, 0xFFFF) >> 8).astype(np.uint8))
    return np.array(img.convert("RGBA"), dtype=np.uint8)


def load_png(
    path: str | os.PathLike, origin: OriginLocation
) -> Tuple[Tuple[int, int], np.ndarray]:
    """Load a PNG as ``((width, height), pixels)``.

    ``pixels`` has shape ``(height, width, 4)``; row 0 is the bottom row when
    ``origin`` is ``LOWER_LEFT`` and the top row otherwise.
    """
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise PngError(f"Failed to open PNG image file '{os.fspath(path)}'.") from exc
    with handle:
        try:
            with Image.open(handle) as img:
                if img.format != "PNG":
                    raise PngError(f"Failed to read PNG image from '{os.fspath(path)}'.")
                img.load()
                pixels = _to_rgba(img)
        except (OSError, ValueError, SyntaxError) as exc:
            raise PngError(f"Failed to read PNG image from '{os.fspath(path)}'.") from exc
    if origin is OriginLocation.LOWER_LEFT:
        pixels = pixels[::-1]
    height, width = pixels.shape[:2]
    return (width, height), np.ascontiguousarray(pixels)


def save_png(
    path: str | os.PathLike,
    size: Sequence[int],
    data,
    origin: OriginLocation,
) -> None:
    """Save ``width * height`` RGBA pixels to ``path`` as a PNG."""
    width, height = (int(v) for v in size)
    if width <= 0 or height <= 0:
        raise PngError("Error writing png.")
    pixels = np.asarray(data, dtype=np.uint8)
    if pixels.size != width * height * 4:
        raise ValueError(
            f"expected {width * height} RGBA pixels, got {pixels.size // 4}"
        )
    pixels = pixels.reshape(height, width, 4)
    if origin is OriginLocation.LOWER_LEFT:
        pixels = pixels[::-1]
    try:
        Image.fromarray(np.ascontiguousarray(pixels)).save(path, format="PNG")
    except (OSError, ValueError) as exc:
        raise PngError("Error writing png.") from exc