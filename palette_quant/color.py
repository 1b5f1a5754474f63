"""Colour values, conversions, and nearest-colour distance helpers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple, Union

import numpy as np
from skimage.color import rgb2lab

MAX_CHANNEL = 0xFFFF


class RGBA64(NamedTuple):
    """A colour with four 16-bit channels (0..65535)."""

    r: int
    g: int
    b: int
    a: int = MAX_CHANNEL

    @classmethod
    def from_rgb8(cls, r: int, g: int, b: int, a: int = 255) -> RGBA64:
        """Scale 8-bit channels up to 16 bits (0xFF -> 0xFFFF)."""
        return cls(r * 0x101, g * 0x101, b * 0x101, a * 0x101)


ColorLike = Union[RGBA64, str, Sequence[int], np.ndarray]


def _hex_to_rgba64(hex_str: str) -> RGBA64:
    """Parse '#RRGGBB' or '#RRGGBBAA'."""
    h = hex_str.strip().lstrip("#")
    if len(h) not in (6, 8):
        msg = f"Invalid hex colour '{hex_str}'"
        raise ValueError(msg)
    try:
        channels = [int(h[i : i + 2], 16) for i in range(0, len(h), 2)]
    except ValueError:
        msg = f"Invalid hex colour '{hex_str}'"
        raise ValueError(msg) from None
    return RGBA64.from_rgb8(*channels)


def rgba64(value: ColorLike) -> RGBA64:
    """Convert any supported colour value to :class:`RGBA64`.

    Plain sequences and arrays are read as 8-bit RGB or RGBA; only
    :class:`RGBA64` instances carry 16-bit channels.
    """
    if isinstance(value, RGBA64):
        return value
    if isinstance(value, str):
        return _hex_to_rgba64(value)
    channels = [int(c) for c in value]
    if len(channels) not in (3, 4) or any(not 0 <= c <= 255 for c in channels):
        msg = f"Expected 3 or 4 channels in 0..255, got {list(value)!r}"
        raise ValueError(msg)
    return RGBA64.from_rgb8(*channels)


def to_rgb8(color: ColorLike) -> tuple[int, int, int]:
    """Drop alpha and reduce to 8 bits per channel."""
    c = rgba64(color)
    return c.r >> 8, c.g >> 8, c.b >> 8


def sq_distance(a: RGBA64, b: RGBA64) -> int:
    """Squared Euclidean distance over all four 16-bit channels."""
    dr = a.r - b.r
    dg = a.g - b.g
    db = a.b - b.b
    da = a.a - b.a
    return dr * dr + dg * dg + db * db + da * da


def palette_array(colors: Sequence[RGBA64]) -> np.ndarray:
    """Stack palette colours into an (N, 4) int64 array."""
    return np.array(colors, dtype=np.int64).reshape(-1, 4)


def nearest_indices(
    pixels: np.ndarray,
    palette: np.ndarray,
    chunk_size: int = 4096,
) -> np.ndarray:
    """Index of the nearest palette row for every pixel row.

    Args:
        pixels:     (N, 4) 16-bit RGBA values.
        palette:    (P, 4) 16-bit RGBA values.
        chunk_size: Pixels processed per batch (controls peak RAM).

    Returns:
        (N,) intp array. Ties resolve to the lowest palette index, so the
        result always agrees with an exhaustive linear scan.
    """
    px = np.asarray(pixels, dtype=np.int64).reshape(-1, 4)
    pal = np.asarray(palette, dtype=np.int64).reshape(-1, 4)
    out = np.empty(len(px), dtype=np.intp)
    for i in range(0, len(px), chunk_size):
        j = min(i + chunk_size, len(px))
        diff = px[i:j, np.newaxis, :] - pal[np.newaxis, :, :]
        out[i:j] = np.argmin(np.sum(diff * diff, axis=2), axis=1)
    return out


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert flat (N, 3) 16-bit RGB -> (N, 3) float64 CIELAB."""
    arr = np.asarray(rgb, dtype=np.float64).reshape(1, -1, 3) / MAX_CHANNEL
    return rgb2lab(arr).reshape(-1, 3)
