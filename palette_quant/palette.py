"""The Palette contract and its implementations.

A palette maps arbitrary colours onto a fixed, ordered list of entries:

- ``index(c)``   -> position of the nearest entry
- ``convert(c)`` -> the nearest entry itself
- ``color_palette()`` -> every entry, in order

:class:`LinearPalette` is the reference: an exhaustive scan using squared
Euclidean distance over all four 16-bit channels, ties going to the lowest
index.  :class:`KDTreePalette` returns the same answers faster on large
palettes.  :class:`LabPalette` swaps in a perceptual metric.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np
from scipy.spatial import cKDTree

from palette_quant.color import (
    RGBA64,
    ColorLike,
    palette_array,
    rgb_to_lab,
    rgba64,
    sq_distance,
)

logger = logging.getLogger(__name__)

COLOR_SPACES = ("rgb", "lab")
SEARCH_MODES = ("linear", "kdtree")


@runtime_checkable
class Palette(Protocol):
    def convert(self, color: ColorLike) -> RGBA64: ...

    def index(self, color: ColorLike) -> int: ...

    def color_palette(self) -> tuple[RGBA64, ...]: ...


class _BasePalette(ABC):
    """Shared storage; subclasses provide :meth:`index`."""

    def __init__(self, colors: Sequence[ColorLike]) -> None:
        self.colors: tuple[RGBA64, ...] = tuple(rgba64(c) for c in colors)
        if not self.colors:
            msg = f"{type(self).__name__} needs at least one colour"
            raise ValueError(msg)

    def __len__(self) -> int:
        return len(self.colors)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self.colors)} colours)"

    @abstractmethod
    def index(self, color: ColorLike) -> int: ...

    def convert(self, color: ColorLike) -> RGBA64:
        return self.colors[self.index(color)]

    def color_palette(self) -> tuple[RGBA64, ...]:
        return self.colors


class LinearPalette(_BasePalette):
    """Exhaustive nearest-colour search with no acceleration."""

    def index(self, color: ColorLike) -> int:
        c = rgba64(color)
        best, best_d = 0, -1
        for i, p in enumerate(self.colors):
            d = sq_distance(c, p)
            if d == 0:
                return i
            if best_d < 0 or d < best_d:
                best, best_d = i, d
        return best


class KDTreePalette(_BasePalette):
    """Nearest-colour search through a k-d tree over the RGBA entries.

    The tree answers in floating point, so every entry within the returned
    radius is re-ranked with exact integer distances.  That keeps results
    identical to :class:`LinearPalette`, including tie-breaks.
    """

    def __init__(self, colors: Sequence[ColorLike]) -> None:
        super().__init__(colors)
        self._tree = cKDTree(palette_array(self.colors).astype(np.float64))

    def index(self, color: ColorLike) -> int:
        c = rgba64(color)
        dist, _ = self._tree.query(np.array(c, dtype=np.float64))
        candidates = self._tree.query_ball_point(
            np.array(c, dtype=np.float64), r=float(dist) + 1.0,
        )
        return min(candidates, key=lambda j: (sq_distance(c, self.colors[j]), j))


class LabPalette(_BasePalette):
    """Nearest colour by Euclidean distance in CIELAB.  Alpha is ignored."""

    def __init__(self, colors: Sequence[ColorLike]) -> None:
        super().__init__(colors)
        self._lab = rgb_to_lab(palette_array(self.colors)[:, :3])

    def index(self, color: ColorLike) -> int:
        c = rgba64(color)
        lab = rgb_to_lab(np.array([c[:3]]))
        diff = self._lab - lab
        return int(np.argmin(np.sum(diff ** 2, axis=1)))


def build_palette(
    colors: Sequence[ColorLike],
    color_space: str = "rgb",
    search: str = "linear",
) -> Palette:
    """Build a palette implementation from a colour list.

    Args:
        colors:      Palette entries, in index order.
        color_space: ``"rgb"`` (reference metric) or ``"lab"`` (perceptual).
        search:      ``"linear"`` or ``"kdtree"``; only used with ``"rgb"``.

    Returns:
        A :class:`Palette`.
    """
    if color_space not in COLOR_SPACES:
        msg = f"Unknown colour space '{color_space}'. Available: {', '.join(COLOR_SPACES)}"
        raise ValueError(msg)
    if search not in SEARCH_MODES:
        msg = f"Unknown search mode '{search}'. Available: {', '.join(SEARCH_MODES)}"
        raise ValueError(msg)

    if color_space == "lab":
        if search != "linear":
            logger.debug("Search mode '%s' ignored for the lab colour space", search)
        return LabPalette(colors)
    if search == "kdtree":
        return KDTreePalette(colors)
    return LinearPalette(colors)
