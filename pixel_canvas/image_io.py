"""Conversion between canvases and Pillow images, plus loading and saving.

Pillow does the actual BMP / PNG / JPEG coding; this module only moves the
raw pixel buffer (and, for indexed images, the palette) across.  Codec
failures are logged and reported as ``None`` / ``False``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image

from pixel_canvas.canvas import Canvas, IndexedCanvas, RgbaCanvas, RgbCanvas

logger = logging.getLogger(__name__)


def canvas_from_image(img: Image.Image) -> Canvas[Any] | None:
    """Copy a Pillow image into a new canvas of the matching format.

    ``P`` images become :class:`IndexedCanvas`, images with any kind of
    transparency :class:`RgbaCanvas`, everything else :class:`RgbCanvas`.
    """
    w, h = img.size
    if img.mode == "P":
        indexed = IndexedCanvas.create(w, h)
        if indexed is None:
            return None
        indexed.pixels[...] = np.asarray(img, dtype=np.uint8)
        entries = np.array((img.getpalette() or [])[: 256 * 3], dtype=np.uint8)
        indexed.palette.reshape(-1)[: len(entries)] = entries
        return indexed

    if img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info:
        rgba = RgbaCanvas.create(w, h)
        if rgba is not None:
            rgba.pixels[...] = np.asarray(img.convert("RGBA"), dtype=np.uint8)
        return rgba

    rgb = RgbCanvas.create(w, h)
    if rgb is not None:
        rgb.pixels[...] = np.asarray(img.convert("RGB"), dtype=np.uint8)
    return rgb


def canvas_to_image(canvas: Canvas[Any]) -> Image.Image:
    """Pillow image holding a copy of the canvas pixels (and palette)."""
    img = Image.fromarray(np.ascontiguousarray(canvas.pixels))
    if isinstance(canvas, IndexedCanvas):
        img.putpalette(canvas.palette.tobytes())
    return img


def load_canvas(path: str | Path) -> Canvas[Any] | None:
    """Decode an image file into a canvas, or ``None`` if it cannot be read."""
    try:
        with Image.open(path) as img:
            img.load()
            return canvas_from_image(img)
    except OSError as exc:
        logger.error("Cannot read %s: %s", path, exc)
        return None


def save_canvas(
    canvas: Canvas[Any],
    path: str | Path,
    pixel_upscale: int = 1,
) -> bool:
    """Encode *canvas* to *path*; each pixel becomes n x n when upscaled.

    Returns:
        ``True`` on success, ``False`` if the file could not be written.
    """
    img = canvas_to_image(canvas)
    if pixel_upscale > 1:
        img = img.resize(
            (canvas.width * pixel_upscale, canvas.height * pixel_upscale),
            Image.NEAREST,
        )
    try:
        img.save(path)
    except (OSError, ValueError) as exc:
        logger.error("Cannot write %s: %s", path, exc)
        return False
    return True


def compose_side_by_side(
    left: Canvas[Any],
    right: Canvas[Any],
    gap: int = 8,
    background: tuple[int, int, int] = (30, 30, 30),
) -> RgbCanvas | None:
    """Place two canvases of any format next to each other on one RGB sheet."""
    sheet = RgbCanvas.create(
        left.width + gap + right.width, max(left.height, right.height),
    )
    if sheet is None:
        return None
    sheet.clear(background)
    sheet.blt(left, 0, 0, left.width, left.height, 0, 0)
    sheet.blt(right, 0, 0, right.width, right.height, left.width + gap, 0)
    return sheet
