"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

OUTPUT_FORMATS = ("png", "gif")


@dataclass(frozen=True)
class DitherConfig:
    """All tuneable parameters for a run.

    Attributes:
        palette:        Preset name, comma-separated hex list, or "auto" to
                        build a palette from each image with k-means.
        num_colors:     Palette size for "auto" (1..256).
        seed:           Random seed for k-means sampling (None = non-deterministic).
        color_space:    Nearest-colour metric - "rgb" (reference) or "lab".
        search:         Palette search - "linear" or "kdtree".
        dither:         Apply error-diffusion dithering.
        pixel_upscale:  Each pixel becomes n x n in the saved image.
        output_format:  "png" or "gif" (both keep the indexed palette).
        save_comparison: Generate a side-by-side comparison grid.
        input_dir:      Folder to scan for source images.
        output_dir:     Folder for results.
    """

    # Palette
    palette: str = "auto"
    num_colors: int = 16
    seed: int | None = 42

    # Nearest-colour search
    color_space: str = "rgb"
    search: str = "linear"

    # Rendering
    dither: bool = True

    # Output
    pixel_upscale: int = 1
    output_format: str = "png"
    save_comparison: bool = True

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".gif"}
    )


def check_output_format(fmt: str) -> str:
    """Normalise an output format name, refusing ones that lose the palette."""
    name = fmt.lower().lstrip(".")
    if name not in OUTPUT_FORMATS:
        msg = f"Unsupported output format '{fmt}'. Available: {', '.join(OUTPUT_FORMATS)}"
        raise ValueError(msg)
    return name
