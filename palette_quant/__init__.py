"""
Palette Quant
=============

Reduce full-colour images to a fixed palette of at most 256 colours and
emit palette-indexed output, using two-neighbour error-diffusion dithering
to keep tonal detail that nearest-colour mapping alone would band away.

- **Palettes**: exhaustive reference search, k-d tree, or CIELAB metric
- **Quantizer**: k-means palette construction
- **Ditherer**: region-aware drawing with a plain-copy fallback
"""

__version__ = "0.3.0"

from palette_quant.color import RGBA64, rgba64
from palette_quant.config import DitherConfig
from palette_quant.dither import Dither211, dither211, dither_image
from palette_quant.draw import draw_src
from palette_quant.errors import PaletteQuantError, PaletteTooLargeError
from palette_quant.geometry import Point, Rectangle
from palette_quant.image_io import load_image, save_paletted
from palette_quant.palette import (
    KDTreePalette,
    LabPalette,
    LinearPalette,
    Palette,
    build_palette,
)
from palette_quant.presets import get_preset, parse_palette_spec
from palette_quant.quantizer import KMeansQuantizer, Quantizer, map_nearest
from palette_quant.raster import PalettedImage, RGBAImage, UniformImage

__all__ = [
    "RGBA64",
    "Dither211",
    "DitherConfig",
    "KDTreePalette",
    "KMeansQuantizer",
    "LabPalette",
    "LinearPalette",
    "Palette",
    "PaletteQuantError",
    "PaletteTooLargeError",
    "PalettedImage",
    "Point",
    "Quantizer",
    "RGBAImage",
    "Rectangle",
    "UniformImage",
    "build_palette",
    "dither211",
    "dither_image",
    "draw_src",
    "get_preset",
    "load_image",
    "map_nearest",
    "parse_palette_spec",
    "rgba64",
    "save_paletted",
]
