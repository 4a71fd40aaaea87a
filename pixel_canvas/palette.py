"""Median-cut palette generation.

The colour cube is partitioned into :class:`PixelRange` boxes.  Each round
scans the image histogram, lets every box absorb the colours inside its
bounds, then splits every box in two along its widest occupied channel.
Eight rounds give 256 boxes; the palette is the mean colour of each box in
the final scan.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

from pixel_canvas.color_utils import NUM_LEVELS

if TYPE_CHECKING:
    from pixel_canvas.canvas import Canvas

logger = logging.getLogger(__name__)

PALETTE_SIZE = 256
MAX_DEPTH = 8  # 2 ** 8 == PALETTE_SIZE


class SplitRule(str, Enum):
    MEAN = "mean"
    MIDPOINT = "midpoint"


SPLIT_RULES = tuple(rule.value for rule in SplitRule)

_CHANNELS = ("red", "green", "blue")


class ColourChannelRange:
    """Bounds of one channel inside a :class:`PixelRange`, plus its histogram.

    ``bits`` is a 256-bit presence vector (bit v set when a pixel with channel
    value v was absorbed) and ``sum`` the total of absorbed values.  Both are
    reset every scan.
    """

    __slots__ = ("bits", "max", "min", "sum")

    def __init__(self, lo: int = 0, hi: int = NUM_LEVELS - 1) -> None:
        self.min = lo
        self.max = hi
        self.bits = 0
        self.sum = 0

    def __repr__(self) -> str:
        return f"ColourChannelRange({self.min}, {self.max})"

    def copy(self) -> ColourChannelRange:
        other = ColourChannelRange(self.min, self.max)
        other.bits = self.bits
        other.sum = self.sum
        return other

    def is_within(self, value: int) -> bool:
        return self.min <= value <= self.max

    def clear(self) -> None:
        self.bits = 0
        self.sum = 0

    def add(self, value: int, count: int = 1) -> None:
        self.sum += value * count
        self.bits |= 1 << value

    def cutoff(self) -> int:
        """Shrink [min, max] to the lowest and highest value present.

        Returns:
            The width of the tightened range.
        """
        if self.bits:
            lowest = (self.bits & -self.bits).bit_length() - 1
            highest = self.bits.bit_length() - 1
            if lowest <= self.max:
                self.min = lowest
            if highest >= self.min:
                self.max = highest
        return self.max - self.min + 1


class PixelRange:
    """One box of the colour-space partition."""

    __slots__ = ("blue", "count", "green", "red")

    def __init__(self) -> None:
        self.count = 0
        self.red = ColourChannelRange()
        self.green = ColourChannelRange()
        self.blue = ColourChannelRange()

    def __repr__(self) -> str:
        return (
            f"PixelRange(r={self.red.min}..{self.red.max}, "
            f"g={self.green.min}..{self.green.max}, "
            f"b={self.blue.min}..{self.blue.max}, count={self.count})"
        )

    def copy(self) -> PixelRange:
        other = PixelRange()
        other.count = self.count
        other.red = self.red.copy()
        other.green = self.green.copy()
        other.blue = self.blue.copy()
        return other

    def is_within(self, r: int, g: int, b: int) -> bool:
        return (
            self.red.is_within(r)
            and self.green.is_within(g)
            and self.blue.is_within(b)
        )

    def clear(self) -> None:
        self.red.clear()
        self.green.clear()
        self.blue.clear()
        self.count = 0

    def add(self, r: int, g: int, b: int, count: int = 1) -> None:
        self.red.add(r, count)
        self.green.add(g, count)
        self.blue.add(b, count)
        self.count += count

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        lo = np.array([self.red.min, self.green.min, self.blue.min])
        hi = np.array([self.red.max, self.green.max, self.blue.max])
        return lo, hi

    def mean(self) -> tuple[int, int, int]:
        """Mean colour of the absorbed pixels (black for an empty box)."""
        count = self.count or 1
        return (
            self.red.sum // count,
            self.green.sum // count,
            self.blue.sum // count,
        )

    def divide(self, split: str = "mean") -> PixelRange:
        """Split in two along the widest occupied channel.

        *self* keeps the lower half; the upper half is returned.  With
        ``split="mean"`` the cut is at the mean of the absorbed values, with
        ``split="midpoint"`` at the centre of the tightened range.
        """
        widths = {name: getattr(self, name).cutoff() for name in _CHANNELS}
        if self.count == 0:
            self.count = 1

        upper = self.copy()

        rw, gw, bw = widths["red"], widths["green"], widths["blue"]
        if gw >= bw and gw >= rw:
            name = "green"
        elif rw >= bw and rw >= gw:
            name = "red"
        else:
            name = "blue"

        lower_channel: ColourChannelRange = getattr(self, name)
        upper_channel: ColourChannelRange = getattr(upper, name)
        if split == "mean":
            cut = lower_channel.sum // self.count
        else:
            cut = (lower_channel.min + lower_channel.max) // 2
        lower_channel.max = cut
        upper_channel.min = cut + 1
        return upper


def _presence_bits(row: np.ndarray) -> int:
    """Pack a (256,) bool row into an int whose bit v is ``row[v]``."""
    return int.from_bytes(np.packbits(row, bitorder="little").tobytes(), "little")


def _histogram(canvas: Canvas[Any]) -> tuple[np.ndarray, np.ndarray]:
    """Distinct RGB colours of *canvas* and how often each occurs."""
    if canvas.format.indexed:
        msg = "Median cut needs a true-colour canvas"
        raise TypeError(msg)
    rgb = canvas.pixels[..., :3].reshape(-1, 3)
    colours, counts = np.unique(rgb, axis=0, return_counts=True)
    return colours.astype(np.int64), counts.astype(np.int64)


def _scan(colours: np.ndarray, counts: np.ndarray, ranges: list[PixelRange]) -> None:
    """Let every range absorb the histogram entries within its bounds.

    Ranges do not overlap; each colour goes to the first range containing it.
    """
    n = len(ranges)
    labels = np.full(len(colours), -1, dtype=np.int64)
    remaining = np.arange(len(colours))
    for i, rng in enumerate(ranges):
        if remaining.size == 0:
            break
        lo, hi = rng.bounds()
        sub = colours[remaining]
        inside = np.all((sub >= lo) & (sub <= hi), axis=1)
        labels[remaining[inside]] = i
        remaining = remaining[~inside]

    if remaining.size:
        logger.debug("%d colours fell outside every range", remaining.size)

    absorbed = labels >= 0
    lab = labels[absorbed]
    cols = colours[absorbed]
    cnts = counts[absorbed]

    range_counts = np.bincount(lab, weights=cnts, minlength=n)
    for c, name in enumerate(_CHANNELS):
        sums = np.bincount(lab, weights=cols[:, c] * cnts, minlength=n)
        presence = np.zeros((n, NUM_LEVELS), dtype=bool)
        presence[lab, cols[:, c]] = True
        for i, rng in enumerate(ranges):
            channel: ColourChannelRange = getattr(rng, name)
            channel.sum = int(sums[i])
            channel.bits = _presence_bits(presence[i])
    for i, rng in enumerate(ranges):
        rng.count = int(range_counts[i])


def median_cut(
    canvas: Canvas[Any], depth: int = MAX_DEPTH, split: str = "mean",
) -> list[PixelRange]:
    """Partition the colours of *canvas* into ``2 ** depth`` ranges.

    Returns the ranges as they stand after the final histogram scan.
    """
    if not 0 <= depth <= MAX_DEPTH:
        msg = f"depth must be within 0..{MAX_DEPTH}, got {depth}"
        raise ValueError(msg)
    if split not in SPLIT_RULES:
        available = ", ".join(SPLIT_RULES)
        msg = f"Unknown split rule '{split}'. Available: {available}"
        raise ValueError(msg)

    colours, counts = _histogram(canvas)
    ranges = [PixelRange()]

    for level in range(depth + 1):
        for rng in ranges:
            rng.clear()
        _scan(colours, counts, ranges)
        if level == depth:
            break
        ranges.extend([rng.divide(split) for rng in list(ranges)])
        logger.debug("Median cut level %d: %d ranges", level + 1, len(ranges))

    return ranges


def generate_palette(
    canvas: Canvas[Any], depth: int = MAX_DEPTH, split: str = "mean",
) -> np.ndarray:
    """Derive a representative palette from a true-colour canvas.

    Args:
        canvas: RGB or RGBA canvas (alpha is ignored).
        depth:  Number of median-cut splits; ``2 ** depth`` entries are used.
        split:  Where ranges are cut, see :data:`SPLIT_RULES`.

    Returns:
        (256, 3) uint8 palette; entries beyond ``2 ** depth`` are black.
    """
    t0 = time.perf_counter()
    ranges = median_cut(canvas, depth, split)
    palette = np.zeros((PALETTE_SIZE, 3), dtype=np.uint8)
    for i, rng in enumerate(ranges):
        palette[i] = rng.mean()
    logger.info(
        "Median-cut palette: %d occupied ranges  (%.2f s)",
        int(sum(rng.count > 0 for rng in ranges)),
        time.perf_counter() - t0,
    )
    return palette
