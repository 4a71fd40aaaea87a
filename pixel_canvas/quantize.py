"""Colour reduction of true-colour canvases to 256-entry indexed canvases."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from pixel_canvas.canvas import IndexedCanvas
from pixel_canvas.dithering import (
    DitherMode,
    reduce_simply,
    reduce_with_error_diffusion,
)
from pixel_canvas.nearest import build_nearest_colour_index
from pixel_canvas.palette import MAX_DEPTH, generate_palette

if TYPE_CHECKING:
    from pixel_canvas.canvas import Canvas

logger = logging.getLogger(__name__)


def quantize(
    canvas: Canvas[Any],
    mode: DitherMode | str = DitherMode.ERROR_DIFFUSION,
    depth: int = MAX_DEPTH,
    split: str = "mean",
) -> IndexedCanvas | None:
    """Reduce a true-colour canvas to an indexed one.

    Args:
        canvas: RGB or RGBA canvas; alpha is ignored.
        mode:   ``"simple"`` or ``"error_diffusion"``.
        depth:  Median-cut depth (``2 ** depth`` palette entries).
        split:  Median-cut split rule, ``"mean"`` or ``"midpoint"``.

    Returns:
        The indexed canvas, or ``None`` if it could not be allocated.
    """
    if canvas.format.indexed:
        msg = "quantize() needs a true-colour canvas"
        raise TypeError(msg)
    mode = DitherMode(mode)

    dst = IndexedCanvas.create(canvas.width, canvas.height)
    if dst is None:
        return None

    dst.palette[...] = generate_palette(canvas, depth, split)
    index = build_nearest_colour_index(dst.palette)

    logger.info("Mapping %dx%d pixels (%s) …", canvas.width, canvas.height, mode.value)
    t0 = time.perf_counter()
    if mode is DitherMode.SIMPLE:
        reduce_simply(canvas, dst, index)
    else:
        reduce_with_error_diffusion(canvas, dst, index)
    logger.info("Pixels mapped  (%.1f s)", time.perf_counter() - t0)
    return dst
