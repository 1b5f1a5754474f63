"""In-memory rasters: full-colour, paletted (indexed), and uniform images.

Every image exposes ``bounds`` and ``at(x, y)``.  Cropping and writing are
optional capabilities, described by the :class:`SubImager` and
:class:`DrawTarget` protocols, so callers can ask an image what it supports
instead of checking its concrete type.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np
from PIL import Image as PILImage

from palette_quant.color import MAX_CHANNEL, RGBA64, ColorLike, nearest_indices, rgba64, to_rgb8
from palette_quant.errors import PaletteTooLargeError
from palette_quant.geometry import Point, Rectangle, ZR

TRANSPARENT = RGBA64(0, 0, 0, 0)
MAX_INDEXED_COLORS = 256


@runtime_checkable
class Image(Protocol):
    """Read-only grid of colours addressed by integer coordinates."""

    @property
    def bounds(self) -> Rectangle: ...

    def at(self, x: int, y: int) -> RGBA64: ...


@runtime_checkable
class SubImager(Protocol):
    """An image that can hand out a view of one of its regions."""

    def sub_image(self, r: Rectangle) -> Image: ...


@runtime_checkable
class DrawTarget(Protocol):
    """A writable image."""

    @property
    def bounds(self) -> Rectangle: ...

    def at(self, x: int, y: int) -> RGBA64: ...

    def set(self, x: int, y: int, color: ColorLike) -> None: ...


# -- Full colour -------------------------------------------------------


class RGBAImage:
    """Full-colour raster backed by an (H, W, 4) uint16 array.

    ``pix[y - min.y, x - min.x]`` holds the colour at (x, y).  Sub-images are
    numpy views, so writes through them land in the parent.
    """

    def __init__(self, pix: np.ndarray, rect: Rectangle) -> None:
        if pix.shape != (rect.dy, rect.dx, 4) and not rect.empty():
            msg = f"Pixel buffer {pix.shape} does not match bounds {rect}"
            raise ValueError(msg)
        self.pix = pix
        self.rect = rect

    @classmethod
    def new(cls, rect: Rectangle) -> RGBAImage:
        """Transparent black image covering *rect*."""
        rect = rect if not rect.empty() else ZR
        return cls(np.zeros((rect.dy, rect.dx, 4), dtype=np.uint16), rect)

    @classmethod
    def from_array(cls, array: np.ndarray, origin: Point = Point()) -> RGBAImage:
        """Wrap an (H, W, 3|4) uint8 or uint16 array.

        8-bit data is scaled to 16 bits; a missing alpha channel is opaque.
        """
        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            msg = f"Expected an (H, W, 3|4) array, got shape {arr.shape}"
            raise ValueError(msg)
        if arr.dtype == np.uint8:
            arr = arr.astype(np.uint16) * 0x101
        elif arr.dtype != np.uint16:
            msg = f"Expected uint8 or uint16 pixels, got {arr.dtype}"
            raise ValueError(msg)
        h, w = arr.shape[:2]
        pix = np.full((h, w, 4), MAX_CHANNEL, dtype=np.uint16)
        pix[:, :, : arr.shape[2]] = arr
        rect = Rectangle(origin, origin.add(Point(w, h)))
        return cls(pix, rect)

    @classmethod
    def from_pil(cls, img: PILImage.Image) -> RGBAImage:
        return cls.from_array(np.array(img.convert("RGBA"), dtype=np.uint8))

    @property
    def bounds(self) -> Rectangle:
        return self.rect

    def at(self, x: int, y: int) -> RGBA64:
        if not self.rect.contains(Point(x, y)):
            return TRANSPARENT
        r, g, b, a = self.pix[y - self.rect.min.y, x - self.rect.min.x]
        return RGBA64(int(r), int(g), int(b), int(a))

    def set(self, x: int, y: int, color: ColorLike) -> None:
        if not self.rect.contains(Point(x, y)):
            return
        self.pix[y - self.rect.min.y, x - self.rect.min.x] = rgba64(color)

    def sub_image(self, r: Rectangle) -> RGBAImage:
        r = r.intersect(self.rect)
        if r.empty():
            return RGBAImage.new(ZR)
        o = r.sub(self.rect.min)
        return RGBAImage(self.pix[o.min.y : o.max.y, o.min.x : o.max.x], r)

    def to_array8(self) -> np.ndarray:
        """(H, W, 4) uint8 copy."""
        return (self.pix >> 8).astype(np.uint8)

    def to_pil(self) -> PILImage.Image:
        return PILImage.fromarray(self.to_array8())


# -- Paletted ----------------------------------------------------------


class PalettedImage:
    """Indexed raster: one uint8 palette index per pixel plus the palette.

    Palettes longer than 256 colours cannot be addressed by uint8 indices
    and are refused with :class:`PaletteTooLargeError`.
    """

    def __init__(
        self,
        pix: np.ndarray,
        rect: Rectangle,
        palette: Sequence[ColorLike],
    ) -> None:
        if pix.shape != (rect.dy, rect.dx) and not rect.empty():
            msg = f"Index buffer {pix.shape} does not match bounds {rect}"
            raise ValueError(msg)
        self.pix = pix
        self.rect = rect
        self.palette: tuple[RGBA64, ...] = tuple(rgba64(c) for c in palette)
        if len(self.palette) > MAX_INDEXED_COLORS:
            raise PaletteTooLargeError(len(self.palette), MAX_INDEXED_COLORS)
        self._palette_arr: np.ndarray | None = None

    @classmethod
    def new(cls, rect: Rectangle, palette: Sequence[ColorLike]) -> PalettedImage:
        """Image covering *rect* with every pixel set to index 0."""
        rect = rect if not rect.empty() else ZR
        return cls(np.zeros((rect.dy, rect.dx), dtype=np.uint8), rect, palette)

    @classmethod
    def from_pil(cls, img: PILImage.Image) -> PalettedImage:
        if img.mode != "P":
            msg = f"Expected a 'P' mode image, got '{img.mode}'"
            raise ValueError(msg)
        flat = img.getpalette() or []
        colors = [tuple(flat[i : i + 3]) for i in range(0, len(flat) - 2, 3)]
        pix = np.array(img, dtype=np.uint8)
        h, w = pix.shape
        return cls(pix, Rectangle.sized(w, h), colors)

    @property
    def bounds(self) -> Rectangle:
        return self.rect

    def _palette_array(self) -> np.ndarray:
        if self._palette_arr is None:
            self._palette_arr = np.array(self.palette, dtype=np.int64).reshape(-1, 4)
        return self._palette_arr

    def color_index_at(self, x: int, y: int) -> int:
        if not self.rect.contains(Point(x, y)):
            return 0
        return int(self.pix[y - self.rect.min.y, x - self.rect.min.x])

    def set_color_index(self, x: int, y: int, index: int) -> None:
        if not self.rect.contains(Point(x, y)):
            return
        self.pix[y - self.rect.min.y, x - self.rect.min.x] = index

    def at(self, x: int, y: int) -> RGBA64:
        if not self.palette or not self.rect.contains(Point(x, y)):
            return TRANSPARENT
        idx = self.color_index_at(x, y)
        if idx >= len(self.palette):
            return TRANSPARENT
        return self.palette[idx]

    def set(self, x: int, y: int, color: ColorLike) -> None:
        """Store the index of the palette entry nearest to *color*."""
        if not self.palette or not self.rect.contains(Point(x, y)):
            return
        c = np.array([rgba64(color)], dtype=np.int64)
        self.set_color_index(x, y, int(nearest_indices(c, self._palette_array())[0]))

    def sub_image(self, r: Rectangle) -> PalettedImage:
        r = r.intersect(self.rect)
        if r.empty():
            return PalettedImage.new(ZR, self.palette)
        o = r.sub(self.rect.min)
        return PalettedImage(
            self.pix[o.min.y : o.max.y, o.min.x : o.max.x], r, self.palette,
        )

    def to_rgb8(self) -> np.ndarray:
        """(H, W, 3) uint8 array of the displayed colours."""
        lut = np.array([to_rgb8(c) for c in self.palette] or [(0, 0, 0)], dtype=np.uint8)
        return lut[np.minimum(self.pix, len(lut) - 1)]

    def to_pil(self) -> PILImage.Image:
        img = PILImage.frombytes(
            "P", (self.rect.dx, self.rect.dy), np.ascontiguousarray(self.pix).tobytes(),
        )
        img.putpalette([ch for c in self.palette for ch in to_rgb8(c)])
        return img


# -- Uniform -----------------------------------------------------------


class UniformImage:
    """An unbounded image of a single colour.  It cannot be cropped."""

    _EXTENT = 1_000_000_000

    def __init__(self, color: ColorLike) -> None:
        self.color = rgba64(color)

    @property
    def bounds(self) -> Rectangle:
        e = self._EXTENT
        return Rectangle.of(-e, -e, e, e)

    def at(self, x: int, y: int) -> RGBA64:
        return self.color
