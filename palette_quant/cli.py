"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from palette_quant.config import DitherConfig, check_output_format
from palette_quant.dither import dither_image
from palette_quant.errors import PaletteQuantError
from palette_quant.image_io import (
    load_image,
    make_comparison_grid,
    save_palette_swatch,
    save_paletted,
)
from palette_quant.palette import Palette, build_palette
from palette_quant.presets import PRESET_PALETTES, parse_palette_spec
from palette_quant.quantizer import KMeansQuantizer, map_nearest
from palette_quant.raster import PalettedImage, RGBAImage

app = typer.Typer(
    name="palette-quant",
    help="Reduce images to a fixed palette with error-diffusion dithering.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()
logger = logging.getLogger("palette_quant")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )


def _quality_metric(source: RGBAImage, result: PalettedImage) -> float:
    """Distance between the mean source colour and the mean displayed colour."""
    s = source.to_array8()[:, :, :3].reshape(-1, 3).astype(np.float64).mean(axis=0)
    r = result.to_rgb8().reshape(-1, 3).astype(np.float64).mean(axis=0)
    return float(np.sqrt(np.sum((s - r) ** 2)))


def _resolve_palette(cfg: DitherConfig, image: RGBAImage) -> Palette:
    if cfg.palette == "auto":
        quantizer = KMeansQuantizer(
            cfg.num_colors,
            seed=cfg.seed,
            dither=cfg.dither,
            color_space=cfg.color_space,
            search=cfg.search,
        )
        return quantizer.palette(image)
    return build_palette(parse_palette_spec(cfg.palette), cfg.color_space, cfg.search)


def _process(
    cfg: DitherConfig,
    image_path: Path,
    output_path: Path,
    comparison_path: Path | None = None,
    swatch_path: Path | None = None,
) -> tuple[PalettedImage, float]:
    """Load, map, and save one image.  Returns the result and its error."""
    image = load_image(image_path)
    b = image.bounds
    logger.info("Source: %dx%d = %d pixels", b.dx, b.dy, b.dx * b.dy)

    palette = _resolve_palette(cfg, image)
    logger.info("Palette: %s (%d colours, %s)", cfg.palette, len(palette.color_palette()), cfg.color_space)

    t0 = time.perf_counter()
    result = dither_image(image, palette) if cfg.dither else map_nearest(image, palette)
    logger.info("Mapped in %.2f s (dither=%s)", time.perf_counter() - t0, cfg.dither)

    save_paletted(result, output_path, cfg.pixel_upscale)
    if swatch_path is not None:
        save_palette_swatch(palette.color_palette(), swatch_path)
    if comparison_path is not None:
        if cfg.dither:
            nearest, dithered = map_nearest(image, palette), result
        else:
            nearest, dithered = result, dither_image(image, palette)
        make_comparison_grid(image, nearest, dithered, comparison_path, cfg.pixel_upscale)

    return result, _quality_metric(image, result)


# Defaults come from DitherConfig - single source of truth
_DEFAULTS = DitherConfig()


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    palette: str = typer.Option(
        _DEFAULTS.palette, "--palette", "-p",
        help="Preset name, comma-separated hex list, or 'auto' (k-means)",
    ),
    num_colors: int = typer.Option(
        _DEFAULTS.num_colors, "--colors", "-n", help="Palette size for 'auto'",
    ),
    seed: int | None = typer.Option(
        _DEFAULTS.seed, "--seed", "-s", help="Random seed (None = random)",
    ),
    color_space: str = typer.Option(
        _DEFAULTS.color_space, "--color-space", help="'rgb' or 'lab'",
    ),
    search: str = typer.Option(
        _DEFAULTS.search, "--search", help="'linear' or 'kdtree'",
    ),
    dither: bool = typer.Option(
        _DEFAULTS.dither, "--dither/--no-dither", help="Error-diffusion dithering",
    ),
    upscale: int = typer.Option(
        _DEFAULTS.pixel_upscale, "--upscale", "-u", help="Pixel upscale factor",
    ),
    output_format: str = typer.Option(
        _DEFAULTS.output_format, "--format", "-f", help="'png' or 'gif'",
    ),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
        help="Save an Original | Nearest | Dithered grid",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Process all images in INPUT_DIR and write results to OUTPUT_DIR."""
    _setup_logging(verbose)

    try:
        output_format = check_output_format(output_format)
    except ValueError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    cfg = DitherConfig(
        palette=palette,
        num_colors=num_colors,
        seed=seed,
        color_space=color_space,
        search=search,
        dither=dither,
        pixel_upscale=upscale,
        output_format=output_format,
        save_comparison=comparison,
        input_dir=input_dir,
        output_dir=output_dir,
    )

    input_dir.mkdir(exist_ok=True)
    output_dir.mkdir(exist_ok=True)

    images = _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    console.print(Panel.fit(
        f"[bold]PALETTE QUANT[/bold]\n"
        f"Palette: {cfg.palette}  |  Colours: {cfg.num_colors}\n"
        f"Metric: {cfg.color_space}/{cfg.search}  |  Dithering: {cfg.dither}\n"
        f"Images: {len(images)}",
        border_style="cyan",
    ))

    for idx, img_path in enumerate(images, 1):
        stem = img_path.stem
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t_total = time.perf_counter()

        out_path = output_dir / f"{stem}_indexed.{cfg.output_format}"
        comp_path = output_dir / f"{stem}_comparison.png" if cfg.save_comparison else None
        swatch_path = output_dir / f"{stem}_palette.png"
        try:
            result, err = _process(cfg, img_path, out_path, comp_path, swatch_path)
        except (PaletteQuantError, ValueError) as exc:
            console.print(f"  [red]✗[/red] {img_path.name}: {escape(str(exc))}")
            raise typer.Exit(1) from exc

        elapsed = time.perf_counter() - t_total
        b = result.bounds
        console.print(
            f"  [green]✓[/green] {out_path.name}  "
            f"[dim]{b.dx}x{b.dy}  colours={len(result.palette)}  error={err:.1f}"
            f"  time={elapsed:.1f}s[/dim]"
        )

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results in [bold]{output_dir}/[/bold]",
        border_style="green",
    ))


# -- single-image command ----------------------------------------------

@app.command()
def single(
    target: Path = typer.Argument(..., help="Path to the source image"),
    output: Path = typer.Option(Path("output/indexed.png"), "--output", "-o"),
    palette: str = typer.Option(_DEFAULTS.palette, "--palette", "-p"),
    num_colors: int = typer.Option(_DEFAULTS.num_colors, "--colors", "-n"),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    color_space: str = typer.Option(_DEFAULTS.color_space, "--color-space"),
    search: str = typer.Option(_DEFAULTS.search, "--search"),
    dither: bool = typer.Option(_DEFAULTS.dither, "--dither/--no-dither"),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u"),
    comparison: Path | None = typer.Option(None, "--comparison", "-c"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Process a single image."""
    _setup_logging(verbose)

    try:
        output_format = check_output_format(output.suffix)
    except ValueError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    output.parent.mkdir(parents=True, exist_ok=True)
    cfg = DitherConfig(
        palette=palette,
        num_colors=num_colors,
        seed=seed,
        color_space=color_space,
        search=search,
        dither=dither,
        pixel_upscale=upscale,
        output_format=output_format,
    )

    try:
        result, err = _process(cfg, target, output, comparison)
    except (PaletteQuantError, ValueError) as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    b = result.bounds
    console.print(
        f"[green]✓[/green] Saved to {output}  "
        f"[dim]{b.dx}x{b.dy}  colours={len(result.palette)}  error={err:.1f}[/dim]"
    )


# -- palettes command --------------------------------------------------

@app.command()
def palettes() -> None:
    """List the built-in palettes."""
    table = Table(title="Built-in palettes")
    table.add_column("Name", style="bold cyan")
    table.add_column("Colours", justify="right")
    table.add_column("Preview")
    for name, hex_list in PRESET_PALETTES.items():
        preview = "".join(f"[on {h}]  [/]" for h in hex_list[:16])
        table.add_row(name, str(len(hex_list)), preview)
    console.print(table)


if __name__ == "__main__":
    app()
