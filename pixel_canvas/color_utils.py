"""Colour arithmetic shared by the quantizer and the nearest-colour search."""

from __future__ import annotations

import numpy as np

NUM_LEVELS = 256
MAX_CHANNEL_SUM = (NUM_LEVELS - 1) * 3  # 765

# SQUARED_DELTA[d] = d * d for a channel difference d.
SQUARED_DELTA: tuple[int, ...] = tuple(d * d for d in range(NUM_LEVELS))

# SUM_DELTA_BOUND[k] is a lower bound on the squared RGB distance between
# two colours whose channel sums differ by k: spreading k evenly over three
# channels gives at least k*k/3.  Monotonically non-decreasing in k.
SUM_DELTA_BOUND: tuple[int, ...] = tuple(
    k * k // 3 for k in range(MAX_CHANNEL_SUM + 1)
)


def squared_distance(a, b) -> int:
    """Squared Euclidean distance between the RGB parts of two colours."""
    return (
        SQUARED_DELTA[abs(int(a[0]) - int(b[0]))]
        + SQUARED_DELTA[abs(int(a[1]) - int(b[1]))]
        + SQUARED_DELTA[abs(int(a[2]) - int(b[2]))]
    )


def luminance(rgb: np.ndarray) -> np.ndarray:
    """ITU-R BT.601 luma of (..., >=3) uint8 colours, truncated to uint8."""
    rgb = rgb[..., :3].astype(np.float64)
    luma = rgb[..., 0] * 0.2990 + rgb[..., 1] * 0.5870 + rgb[..., 2] * 0.1140
    return np.clip(luma, 0, 255).astype(np.uint8)


def grayscale_palette() -> np.ndarray:
    """(256, 3) uint8 palette whose entry i is gray level i."""
    levels = np.arange(NUM_LEVELS, dtype=np.uint8)
    return np.repeat(levels[:, np.newaxis], 3, axis=1)
