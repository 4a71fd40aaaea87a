"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class QuantizeConfig:
    """All tuneable parameters for a colour-reduction run.

    Attributes:
        mode:            "error_diffusion" (Jarvis-Judice-Ninke) or "simple".
        depth:           Median-cut splits; the palette uses 2 ** depth entries.
        split:           Where a range is cut: "mean" of its pixels or
                         "midpoint" of its occupied extent.
        pixel_upscale:   Each pixel becomes n x n in saved previews.
        output_format:   Image format for saved files.
        save_comparison: Also write the source and result side by side.
        comparison_gap:  Gap in pixels between the two comparison panels.
        input_dir:       Folder to scan for source images.
        output_dir:      Folder for results.
    """

    # Quantisation
    mode: str = "error_diffusion"
    depth: int = 8
    split: str = "mean"

    # Output
    pixel_upscale: int = 1
    output_format: str = "png"
    save_comparison: bool = False
    comparison_gap: int = 8

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".png", ".bmp", ".jpg", ".jpeg", ".gif", ".tiff", ".tif", ".webp"}
    )
