"""Unfiltered region copy between images.

This is the path taken whenever dithering is not possible: every pixel of
the clipped region is replaced by the corresponding source pixel.
"""

from __future__ import annotations

import logging

import numpy as np

from palette_quant.color import nearest_indices
from palette_quant.geometry import Point, Rectangle
from palette_quant.raster import DrawTarget, Image, PalettedImage, RGBAImage

logger = logging.getLogger(__name__)


def clip(
    dst: Image,
    r: Rectangle,
    src: Image,
    sp: Point,
) -> tuple[Rectangle, Point]:
    """Shrink *r* to what both images cover and shift *sp* to match.

    *sp* is the source point aligned with ``r.min``.
    """
    orig = r.min
    r = r.intersect(dst.bounds)
    r = r.intersect(src.bounds.add(orig.sub(sp)))
    return r, sp.add(r.min.sub(orig))


def _slices(img_rect: Rectangle, r: Rectangle) -> tuple[slice, slice]:
    o = r.sub(img_rect.min)
    return slice(o.min.y, o.max.y), slice(o.min.x, o.max.x)


def draw_src(dst: DrawTarget, r: Rectangle, src: Image, sp: Point) -> None:
    """Copy *src* onto *dst* over *r*, replacing destination pixels.

    Args:
        dst: Writable destination.
        r:   Destination region.
        src: Source image.
        sp:  Source point aligned with ``r.min``.
    """
    r, sp = clip(dst, r, src, sp)
    if r.empty():
        return
    sr = r.add(sp.sub(r.min))
    ys, xs = _slices(dst.bounds, r)

    if isinstance(dst, PalettedImage) and isinstance(src, PalettedImage):
        if dst.palette == src.palette:
            sy, sx = _slices(src.bounds, sr)
            dst.pix[ys, xs] = src.pix[sy, sx]
            return
    elif isinstance(dst, RGBAImage) and isinstance(src, RGBAImage):
        sy, sx = _slices(src.bounds, sr)
        dst.pix[ys, xs] = src.pix[sy, sx]
        return
    elif isinstance(dst, PalettedImage) and isinstance(src, RGBAImage) and dst.palette:
        sy, sx = _slices(src.bounds, sr)
        block = src.pix[sy, sx].reshape(-1, 4)
        idx = nearest_indices(block, np.array(dst.palette, dtype=np.int64))
        dst.pix[ys, xs] = idx.reshape(r.dy, r.dx).astype(np.uint8)
        return

    logger.debug("Per-pixel copy %s -> %s over %s", type(src).__name__, type(dst).__name__, r)
    d = sp.sub(r.min)
    for y in range(r.min.y, r.max.y):
        for x in range(r.min.x, r.max.x):
            dst.set(x, y, src.at(x + d.x, y + d.y))
