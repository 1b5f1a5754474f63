"""Image loading, saving, and comparison-grid generation."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from palette_quant.color import RGBA64, to_rgb8
from palette_quant.raster import PalettedImage, RGBAImage


def load_image(path: str | Path) -> RGBAImage:
    """Load any Pillow-readable file as a 16-bit RGBA raster."""
    with Image.open(path) as img:
        return RGBAImage.from_pil(img)


def save_paletted(
    image: PalettedImage,
    path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Save an indexed image (PNG or GIF keep the palette).

    Upscaling is nearest-neighbour, so indices are preserved.
    """
    img = image.to_pil()
    if pixel_upscale > 1:
        w, h = img.size
        img = img.resize((w * pixel_upscale, h * pixel_upscale), Image.NEAREST)
    img.save(path)


def save_palette_swatch(
    colors: Sequence[RGBA64],
    path: str | Path,
    swatch: int = 16,
    columns: int = 16,
) -> None:
    """Save the palette as a grid of *swatch*-sized squares."""
    n = len(colors)
    cols = min(columns, n)
    rows = -(-n // cols)
    arr = np.zeros((rows, cols, 3), dtype=np.uint8)
    for i, c in enumerate(colors):
        arr[i // cols, i % cols] = to_rgb8(c)
    img = Image.fromarray(arr).resize((cols * swatch, rows * swatch), Image.NEAREST)
    img.save(path)


def make_comparison_grid(
    original: RGBAImage,
    nearest: PalettedImage,
    dithered: PalettedImage,
    output_path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Create a 3-panel comparison: Original | Nearest | Dithered.

    All panels share the original's pixel dimensions times *pixel_upscale*.
    """
    b = original.bounds
    panel_w = b.dx * pixel_upscale
    panel_h = b.dy * pixel_upscale
    label_height = 36

    panels = [
        Image.fromarray(np.ascontiguousarray(original.to_array8()[:, :, :3])),
        Image.fromarray(nearest.to_rgb8()),
        Image.fromarray(dithered.to_rgb8()),
    ]
    panels = [p.resize((panel_w, panel_h), Image.NEAREST) for p in panels]
    labels = [
        "Original",
        f"Nearest ({len(nearest.palette)} colours)",
        "Dithered",
    ]

    gap = 8
    total_w = len(panels) * panel_w + (len(panels) - 1) * gap
    total_h = panel_h + label_height

    canvas = Image.new("RGB", (total_w, total_h), (30, 30, 30))
    draw = ImageDraw.Draw(canvas)

    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 18,
        )
    except OSError:
        font = ImageFont.load_default()

    for i, (panel, label) in enumerate(zip(panels, labels, strict=False)):
        x = i * (panel_w + gap)
        canvas.paste(panel, (x, label_height))

        bbox = draw.textbbox((0, 0), label, font=font)
        text_w = bbox[2] - bbox[0]
        tx = x + (panel_w - text_w) // 2
        draw.text((tx, 6), label, fill=(220, 220, 220), font=font)

    canvas.save(output_path)
