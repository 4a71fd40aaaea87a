"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from pixel_canvas.canvas import Canvas, IndexedCanvas
from pixel_canvas.config import QuantizeConfig
from pixel_canvas.dithering import DitherMode
from pixel_canvas.image_io import compose_side_by_side, load_canvas, save_canvas
from pixel_canvas.palette import SplitRule
from pixel_canvas.quantize import quantize

app = typer.Typer(
    name="pixel-canvas",
    help="Reduce images to 256 colours with median cut and error diffusion.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


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


def _quality_metric(source: Canvas[Any], indexed: IndexedCanvas) -> float:
    s = source.pixels[..., :3].reshape(-1, 3).astype(np.float64)
    q = indexed.palette[indexed.pixels.reshape(-1)].astype(np.float64)
    return float(np.mean(np.sqrt(np.sum((s - q) ** 2, axis=1))))


def _load_true_colour(path: Path) -> Canvas[Any]:
    canvas = load_canvas(path)
    if canvas is None:
        console.print(f"[red]Cannot read {path}[/red]")
        raise typer.Exit(1)
    if isinstance(canvas, IndexedCanvas):
        expanded = canvas.to_rgb()
        if expanded is None:
            console.print("[red]Out of memory[/red]")
            raise typer.Exit(1)
        return expanded
    return canvas


def _reduce_one(
    img_path: Path, out_path: Path, cfg: QuantizeConfig,
) -> tuple[Canvas[Any], IndexedCanvas]:
    source = _load_true_colour(img_path)
    indexed = quantize(source, cfg.mode, depth=cfg.depth, split=cfg.split)
    if indexed is None:
        console.print("[red]Out of memory[/red]")
        raise typer.Exit(1)

    if not save_canvas(indexed, out_path, cfg.pixel_upscale):
        raise typer.Exit(1)

    if cfg.save_comparison:
        sheet = compose_side_by_side(source, indexed, gap=cfg.comparison_gap)
        if sheet is not None:
            comp_path = out_path.with_name(
                f"{out_path.stem}_comparison.{cfg.output_format}",
            )
            save_canvas(sheet, comp_path, cfg.pixel_upscale)
    return source, indexed


# Defaults come from QuantizeConfig - single source of truth
_DEFAULTS = QuantizeConfig()


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    mode: DitherMode = typer.Option(
        DitherMode(_DEFAULTS.mode), "--mode", "-m", help="'simple' or 'error_diffusion'",
    ),
    depth: int = typer.Option(
        _DEFAULTS.depth, "--depth", "-d", help="Median-cut depth (2**depth colours)",
    ),
    split: SplitRule = typer.Option(
        SplitRule(_DEFAULTS.split), "--split", help="'mean' or 'midpoint'",
    ),
    upscale: int = typer.Option(
        _DEFAULTS.pixel_upscale, "--upscale", "-u", help="Pixel upscale factor",
    ),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
        help="Also save source and result side by side",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Reduce all images in INPUT_DIR and write results to OUTPUT_DIR."""
    _setup_logging(verbose)
    logger = logging.getLogger("pixel_canvas")

    cfg = QuantizeConfig(
        mode=mode.value,
        depth=depth,
        split=split.value,
        pixel_upscale=upscale,
        save_comparison=comparison,
        input_dir=input_dir,
        output_dir=output_dir,
    )

    output_dir.mkdir(parents=True, exist_ok=True)

    images = _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        raise typer.Exit(0)

    console.print(Panel.fit(
        f"[bold]PIXEL CANVAS[/bold]\n"
        f"Mode: {cfg.mode}  |  Depth: {cfg.depth}  |  Split: {cfg.split}\n"
        f"Images: {len(images)}",
        border_style="cyan",
    ))

    for idx, img_path in enumerate(images, 1):
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t_total = time.perf_counter()

        out_path = output_dir / f"{img_path.stem}_indexed.{cfg.output_format}"
        source, indexed = _reduce_one(img_path, out_path, cfg)
        logger.info("Source: %dx%d", source.width, source.height)

        err = _quality_metric(source, indexed)
        elapsed = time.perf_counter() - t_total
        console.print(
            f"  [green]✓[/green] {out_path.name}  "
            f"[dim]{source.width}x{source.height}  error={err:.1f}"
            f"  time={elapsed:.1f}s[/dim]"
        )

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results in [bold]{output_dir}/[/bold]",
        border_style="green",
    ))


# -- single-image commands ---------------------------------------------

@app.command()
def single(
    source: Path = typer.Argument(..., help="Path to the source image"),
    output: Path = typer.Option(Path("output/indexed.png"), "--output", "-o"),
    mode: DitherMode = typer.Option(DitherMode(_DEFAULTS.mode), "--mode", "-m"),
    depth: int = typer.Option(_DEFAULTS.depth, "--depth", "-d"),
    split: SplitRule = typer.Option(SplitRule(_DEFAULTS.split), "--split"),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u"),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Reduce a single image to 256 colours."""
    _setup_logging(verbose)

    output.parent.mkdir(parents=True, exist_ok=True)
    cfg = QuantizeConfig(
        mode=mode.value,
        depth=depth,
        split=split.value,
        pixel_upscale=upscale,
        save_comparison=comparison,
    )
    src, indexed = _reduce_one(source, output, cfg)

    err = _quality_metric(src, indexed)
    console.print(
        f"[green]✓[/green] Saved to {output}  "
        f"[dim]{src.width}x{src.height}  error={err:.1f}[/dim]"
    )


@app.command()
def grayscale(
    source: Path = typer.Argument(..., help="Path to the source image"),
    output: Path = typer.Option(Path("output/gray.png"), "--output", "-o"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Convert an image to 256 gray levels."""
    _setup_logging(verbose)

    output.parent.mkdir(parents=True, exist_ok=True)
    src = _load_true_colour(source)
    gray = src.to_grayscale_indexed()  # type: ignore[attr-defined]
    if gray is None or not save_canvas(gray, output):
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Saved to {output}")


@app.command()
def info(
    source: Path = typer.Argument(..., help="Path to an image"),
) -> None:
    """Show how an image is held in memory."""
    canvas = load_canvas(source)
    if canvas is None:
        console.print(f"[red]Cannot read {source}[/red]")
        raise typer.Exit(1)

    if isinstance(canvas, IndexedCanvas):
        colours = len(np.unique(canvas.pixels))
    else:
        colours = len(np.unique(canvas.pixels.reshape(-1, canvas.format.pixel_size), axis=0))

    console.print(Panel.fit(
        f"[bold]{source.name}[/bold]\n"
        f"Format: {canvas.format.name}  |  Size: {canvas.width}x{canvas.height}\n"
        f"Pitch: {canvas.pitch} bytes  |  Distinct pixel values: {colours}",
        border_style="cyan",
    ))


if __name__ == "__main__":
    app()
