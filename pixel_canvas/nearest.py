"""Nearest-palette-entry search bucketed by channel sum.

Palette entries are grouped by ``R + G + B`` (0..765).  A query with channel
sum ``S`` visits buckets ``S, S+1, S-1, S+2, S-2, ...``.  Two colours whose
sums differ by ``k`` are at squared distance at least ``k*k // 3``
(:data:`~pixel_canvas.color_utils.SUM_DELTA_BOUND`), so the scan stops as
soon as that bound exceeds the best distance found: no closer entry can
remain unvisited.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from pixel_canvas.color_utils import (
    MAX_CHANNEL_SUM,
    SQUARED_DELTA,
    SUM_DELTA_BOUND,
)


class NearestColourIndex:
    """Search structure over a snapshot of a palette.

    The palette is copied on construction; build a new index whenever the
    palette changes.
    """

    def __init__(self, palette: np.ndarray | Sequence[Sequence[int]]) -> None:
        table = np.asarray(palette, dtype=np.uint8)
        if table.ndim != 2 or table.shape[1] < 3 or len(table) == 0:
            msg = f"Expected a non-empty (N, 3) palette, got shape {table.shape}"
            raise ValueError(msg)
        self._palette = table[:, :3].copy()
        self._colours: list[tuple[int, int, int]] = [
            (int(r), int(g), int(b)) for r, g, b in self._palette
        ]
        self._buckets: list[list[int]] = [[] for _ in range(MAX_CHANNEL_SUM + 1)]
        for i, (r, g, b) in enumerate(self._colours):
            self._buckets[r + g + b].append(i)

    def __len__(self) -> int:
        return len(self._colours)

    @property
    def palette(self) -> np.ndarray:
        return self._palette.copy()

    def bucket(self, channel_sum: int) -> list[int]:
        """Palette indices whose channels add up to *channel_sum*."""
        return list(self._buckets[channel_sum])

    def is_current(self, palette: np.ndarray) -> bool:
        """Whether *palette* still matches the snapshot this index was built on."""
        return np.array_equal(np.asarray(palette)[:, :3], self._palette)

    def find(self, colour: Sequence[int]) -> tuple[int, int]:
        """Nearest palette entry to *colour* (channels within 0..255).

        Returns:
            ``(index, squared_distance)``.  An exact match returns at once
            with distance 0.  Equally near entries with the same channel
            sum resolve to the highest palette index.
        """
        r, g, b = int(colour[0]), int(colour[1]), int(colour[2])
        base = r + g + b

        nearest = 0
        best: float = math.inf
        for offset in range(MAX_CHANNEL_SUM + 1):
            if best < SUM_DELTA_BOUND[offset]:
                break
            sums = (base,) if offset == 0 else (base + offset, base - offset)
            for s in sums:
                if not 0 <= s <= MAX_CHANNEL_SUM:
                    continue
                for i in reversed(self._buckets[s]):
                    pr, pg, pb = self._colours[i]
                    diff = (
                        SQUARED_DELTA[abs(r - pr)]
                        + SQUARED_DELTA[abs(g - pg)]
                        + SQUARED_DELTA[abs(b - pb)]
                    )
                    if diff == 0:
                        return i, 0
                    if diff < best:
                        nearest = i
                        best = diff
        return nearest, int(best)

    def find_index(self, colour: Sequence[int]) -> int:
        return self.find(colour)[0]


def build_nearest_colour_index(palette: np.ndarray) -> NearestColourIndex:
    return NearestColourIndex(palette)
