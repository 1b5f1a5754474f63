"""Two-neighbour error-diffusion dithering ("dither 2-1-1").

Pixels are visited row by row, left to right.  After a pixel is mapped to
its nearest palette entry, half of the remaining error is carried to the
pixel on its right; half of that again is queued in a per-column "down"
slot, and also folded into the slot of the current column.  Only slot 0
seeds the carry of the following row.

All arithmetic mirrors unsigned 16-bit channels:

- an adjusted channel saturates at 0xFFFF instead of wrapping;
- a channel where the palette entry is brighter than the adjusted colour
  diffuses nothing (errors never go negative);
- halving truncates.

These rules are kept exactly as they are so that output stays identical to
existing indexed images produced by this algorithm.
"""

from __future__ import annotations

import logging

from palette_quant.color import MAX_CHANNEL, RGBA64
from palette_quant.draw import draw_src
from palette_quant.errors import PaletteTooLargeError
from palette_quant.geometry import Point, Rectangle
from palette_quant.palette import LinearPalette, Palette
from palette_quant.raster import (
    MAX_INDEXED_COLORS,
    DrawTarget,
    Image,
    PalettedImage,
    SubImager,
)

logger = logging.getLogger(__name__)


def as_paletted(dst: DrawTarget) -> PalettedImage | None:
    """The destination as an indexed raster, or None if it is not one."""
    return dst if isinstance(dst, PalettedImage) else None


def as_sub_imager(src: Image) -> SubImager | None:
    """The source as something that can be cropped, or None."""
    return src if isinstance(src, SubImager) else None


def dither211(src: Image, palette: Palette) -> PalettedImage:
    """Map every pixel of *src* to *palette* with error diffusion.

    Args:
        src:     Source image; its whole bounds are processed.
        palette: Target palette (at most 256 entries).

    Returns:
        A new :class:`PalettedImage` with the bounds of *src*.

    Raises:
        PaletteTooLargeError: The palette has more than 256 entries.
    """
    cp = palette.color_palette()
    if len(cp) > MAX_INDEXED_COLORS:
        raise PaletteTooLargeError(len(cp), MAX_INDEXED_COLORS)

    b = src.bounds
    out = PalettedImage.new(b, cp)
    if b.empty():
        return out

    width = b.dx
    # Pending errors: rt for the pixel to the right, dn[col] for the next row.
    # dn[width] only catches the spill from the last column.
    rt = [0, 0, 0]
    dn = [[0, 0, 0] for _ in range(width + 1)]

    for y in range(b.min.y, b.max.y):
        rt = dn[0]
        dn[0] = [0, 0, 0]
        for col in range(width):
            x = b.min.x + col
            c0 = src.at(x, y)
            adjusted = [min(c0[ch] + rt[ch], MAX_CHANNEL) for ch in range(3)]

            i = palette.index(RGBA64(adjusted[0], adjusted[1], adjusted[2]))
            out.set_color_index(x, y, i)
            p = cp[i]

            rt = [
                0 if p[ch] > adjusted[ch] else (adjusted[ch] - p[ch]) // 2
                for ch in range(3)
            ]
            dn[col + 1] = [e // 2 for e in rt]
            dn[col] = [
                min(dn[col][ch] + dn[col + 1][ch], MAX_CHANNEL) for ch in range(3)
            ]

    return out


class Dither211:
    """Drawer that dithers a source region into an indexed destination.

    Destinations that are not indexed, and sources that cannot be cropped
    when cropping is needed, get a plain pixel copy instead.
    """

    def draw(
        self,
        dst: DrawTarget,
        r: Rectangle,
        src: Image,
        sp: Point,
        palette: Palette | None = None,
    ) -> None:
        """Dither *src* onto *dst* over *r*.

        Args:
            dst:     Destination image.
            r:       Destination region.
            src:     Source image.
            sp:      Source point aligned with ``r.min``.
            palette: Palette to dither against; defaults to the
                destination's own palette.

        Raises:
            PaletteTooLargeError: The palette has more than 256 entries.
        """
        pd = as_paletted(dst)
        if pd is None:
            logger.debug("Destination is not indexed; copying without dithering")
            draw_src(dst, r, src, sp)
            return

        if palette is None:
            palette = LinearPalette(pd.palette)
        size = len(palette.color_palette())
        if size > MAX_INDEXED_COLORS:
            raise PaletteTooLargeError(size, MAX_INDEXED_COLORS)

        delta = sp.sub(r.min)
        ir = r.intersect(pd.bounds).intersect(src.bounds.sub(delta))
        if ir.empty():
            logger.debug("Nothing to draw: %s misses source or destination", r)
            return

        sr = ir.add(delta)
        if not sr.eq(src.bounds):
            cropper = as_sub_imager(src)
            if cropper is None:
                logger.debug("Source cannot be cropped; copying without dithering")
                draw_src(dst, r, src, sp)
                return
            src = cropper.sub_image(sr)

        dithered = dither211(src, palette)
        draw_src(pd, ir, dithered, sr.min)


def dither_image(src: Image, palette: Palette) -> PalettedImage:
    """Dither all of *src* into a new indexed image using *palette*."""
    dst = PalettedImage.new(src.bounds, palette.color_palette())
    Dither211().draw(dst, dst.bounds, src, src.bounds.min, palette)
    return dst
