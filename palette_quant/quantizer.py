"""Palette construction from image statistics.

A :class:`Quantizer` turns an image into either a :class:`Palette` or a
finished indexed image.  :class:`KMeansQuantizer` clusters a pixel sample
with scipy's k-means.
"""

from __future__ import annotations

import logging
import time
from typing import Protocol, runtime_checkable

import numpy as np
from scipy.cluster.vq import kmeans2

from palette_quant.color import RGBA64
from palette_quant.dither import dither_image
from palette_quant.draw import draw_src
from palette_quant.errors import PaletteTooLargeError
from palette_quant.palette import KDTreePalette, LinearPalette, Palette, build_palette
from palette_quant.raster import MAX_INDEXED_COLORS, Image, PalettedImage, RGBAImage

logger = logging.getLogger(__name__)


@runtime_checkable
class Quantizer(Protocol):
    def image(self, img: Image) -> PalettedImage: ...

    def palette(self, img: Image) -> Palette: ...


def _pixels(img: Image) -> np.ndarray:
    """(N, 3) int64 RGB channels of every pixel in *img*."""
    if isinstance(img, RGBAImage):
        return img.pix[:, :, :3].reshape(-1, 3).astype(np.int64)
    b = img.bounds
    return np.array(
        [img.at(x, y)[:3] for y in range(b.min.y, b.max.y) for x in range(b.min.x, b.max.x)],
        dtype=np.int64,
    ).reshape(-1, 3)


class KMeansQuantizer:
    """Pick up to *num_colors* representative colours with k-means.

    Args:
        num_colors:  Palette size, 1..256.
        seed:        Seed for pixel sampling and centroid initialisation.
        dither:      Render :meth:`image` with error diffusion instead of
            plain nearest-colour mapping.
        color_space: Metric of the produced palette (``"rgb"`` or ``"lab"``).
        search:      Palette search mode (``"linear"`` or ``"kdtree"``).
        max_samples: Pixels fed to k-means; larger images are subsampled.
    """

    def __init__(
        self,
        num_colors: int = 16,
        seed: int | None = 42,
        dither: bool = True,
        color_space: str = "rgb",
        search: str = "linear",
        max_samples: int = 20_000,
    ) -> None:
        if not 1 <= num_colors <= MAX_INDEXED_COLORS:
            msg = f"num_colors must be in 1..{MAX_INDEXED_COLORS}, got {num_colors}"
            raise ValueError(msg)
        self.num_colors = num_colors
        self.seed = seed
        self.dither = dither
        self.color_space = color_space
        self.search = search
        self.max_samples = max_samples

    def palette(self, img: Image) -> Palette:
        pixels = _pixels(img)
        if len(pixels) == 0:
            msg = "Cannot build a palette from an empty image"
            raise ValueError(msg)

        rng = np.random.default_rng(self.seed)
        if len(pixels) > self.max_samples:
            pixels = pixels[rng.choice(len(pixels), size=self.max_samples, replace=False)]

        unique = np.unique(pixels, axis=0)
        t0 = time.perf_counter()
        if len(unique) <= self.num_colors:
            centroids = unique
        else:
            centroids, _ = kmeans2(
                pixels.astype(np.float64),
                self.num_colors,
                minit="++",
                seed=rng,
            )
            centroids = np.unique(
                np.clip(np.rint(centroids), 0, 0xFFFF).astype(np.int64), axis=0,
            )
        logger.info(
            "k-means palette: %d colours from %d samples (%.2f s)",
            len(centroids), len(pixels), time.perf_counter() - t0,
        )

        colors = [RGBA64(int(r), int(g), int(b)) for r, g, b in centroids]
        return build_palette(colors, self.color_space, self.search)

    def image(self, img: Image) -> PalettedImage:
        p = self.palette(img)
        if self.dither:
            return dither_image(img, p)
        return map_nearest(img, p)


def map_nearest(img: Image, palette: Palette) -> PalettedImage:
    """Index every pixel of *img* by its nearest palette entry, no dithering."""
    cp = palette.color_palette()
    if len(cp) > MAX_INDEXED_COLORS:
        raise PaletteTooLargeError(len(cp), MAX_INDEXED_COLORS)
    out = PalettedImage.new(img.bounds, cp)
    if isinstance(palette, (LinearPalette, KDTreePalette)):
        # Same metric as PalettedImage.set, so the vectorised copy applies.
        draw_src(out, out.bounds, img, img.bounds.min)
        return out
    b = img.bounds
    for y in range(b.min.y, b.max.y):
        for x in range(b.min.x, b.max.x):
            out.set_color_index(x, y, palette.index(img.at(x, y)))
    return out
