"""Mapping true-colour pixels onto a palette.

Two modes are provided:

- **simple**: every pixel becomes its nearest palette entry.
- **error diffusion**: each pixel's quantisation residual is spread forward
  over not-yet-visited neighbours using the Jarvis, Judice & Ninke
  weights, giving the illusion of intermediate tones.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pixel_canvas.canvas import Canvas, IndexedCanvas
    from pixel_canvas.nearest import NearestColourIndex


class DitherMode(str, Enum):
    SIMPLE = "simple"
    ERROR_DIFFUSION = "error_diffusion"


# Jarvis-Judice-Ninke weights. The centre of row 0 is the current pixel;
# everything at or left of it in that row has already been visited.
JJN_KERNEL = np.array(
    [
        [0, 0, 0, 7, 5],
        [3, 5, 7, 5, 3],
        [1, 3, 5, 3, 1],
    ],
    dtype=np.int64,
)
KERNEL_TOTAL = int(JJN_KERNEL.sum())  # 48
KERNEL_ROWS, KERNEL_COLS = JJN_KERNEL.shape
MARGIN = KERNEL_COLS // 2


def _trunc_div(value: int, divisor: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(value) // divisor
    return -q if value < 0 else q


def _clamp(value: int) -> int:
    return 0 if value < 0 else 255 if value > 255 else value


class ErrorDiffusionState:
    """Sliding window of accumulated error for the current and next two rows.

    ``errors[row, MARGIN + x, channel]`` holds the weighted error owed to
    pixel x of the row ``row`` lines below the current one.  The margin
    columns, and rows below the image, are never written and stay zero.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.row = 0
        self.errors = np.zeros((KERNEL_ROWS, width + 2 * MARGIN, 3), dtype=np.int64)

    def correction(self, x: int) -> tuple[int, int, int]:
        """Accumulated error for pixel x of the current row, normalised."""
        er, eg, eb = (int(v) for v in self.errors[0, MARGIN + x])
        return (
            _trunc_div(er, KERNEL_TOTAL),
            _trunc_div(eg, KERNEL_TOTAL),
            _trunc_div(eb, KERNEL_TOTAL),
        )

    def spread(self, x: int, residual: Sequence[int]) -> None:
        """Distribute the residual of pixel x over its unvisited neighbours."""
        lo = max(0, x - MARGIN)
        hi = min(self.width, x + MARGIN + 1)
        rows = min(KERNEL_ROWS, self.height - self.row)
        weights = JJN_KERNEL[:rows, lo - x + MARGIN:hi - x + MARGIN]
        self.errors[:rows, lo + MARGIN:hi + MARGIN] += (
            weights[..., np.newaxis] * np.asarray(residual, dtype=np.int64)
        )

    def advance(self) -> None:
        """Finish the current row: shift the window up and zero the new row."""
        self.errors[:-1] = self.errors[1:]
        self.errors[-1] = 0
        self.row += 1


def reduce_simply(
    src: Canvas[Any], dst: IndexedCanvas, index: NearestColourIndex,
) -> None:
    """Write the nearest palette index of every *src* pixel into *dst*."""
    rgb = src.pixels[..., :3].reshape(-1, 3)
    colours, inverse = np.unique(rgb, axis=0, return_inverse=True)
    lookup = np.array([index.find(c)[0] for c in colours], dtype=np.uint8)
    dst.pixels[...] = lookup[inverse.reshape(-1)].reshape(src.height, src.width)


def reduce_with_error_diffusion(
    src: Canvas[Any], dst: IndexedCanvas, index: NearestColourIndex,
) -> None:
    """Quantise *src* into *dst* in raster order, diffusing the residuals.

    The residual is taken against the error-corrected colour before
    clamping, so out-of-gamut corrections keep propagating.
    """
    palette = [tuple(int(c) for c in entry) for entry in dst.palette]
    state = ErrorDiffusionState(src.width, src.height)
    out = dst.pixels

    for y in range(src.height):
        row = src.pixels[y, :, :3].tolist()
        indices = []
        for x, (r, g, b) in enumerate(row):
            er, eg, eb = state.correction(x)
            rr, gg, bb = r + er, g + eg, b + eb

            best, _ = index.find((_clamp(rr), _clamp(gg), _clamp(bb)))
            pr, pg, pb = palette[best]
            state.spread(x, (rr - pr, gg - pg, bb - pb))
            indices.append(best)

        out[y] = indices
        state.advance()
