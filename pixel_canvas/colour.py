"""Pixel value types and the pixel formats a Canvas can hold."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

import numpy as np


class RgbColour(NamedTuple):
    """24-bit RGB colour."""

    red: int = 0
    green: int = 0
    blue: int = 0


class RgbaColour(NamedTuple):
    """32-bit RGBA colour. ``alpha`` is opacity: 0 transparent, 255 opaque."""

    red: int = 0
    green: int = 0
    blue: int = 0
    alpha: int = 255

    @classmethod
    def from_rgb(cls, rgb: Sequence[int], alpha: int = 255) -> RgbaColour:
        return cls(int(rgb[0]), int(rgb[1]), int(rgb[2]), alpha)

    @property
    def rgb(self) -> RgbColour:
        return RgbColour(self.red, self.green, self.blue)


def same_rgb(a: Sequence[int], b: Sequence[int]) -> bool:
    """Compare two colours on their RGB channels only, ignoring any alpha."""
    return tuple(a[:3]) == tuple(b[:3])


@dataclass(frozen=True)
class PixelFormat:
    """Storage layout of one pixel.

    Attributes:
        name:       Short identifier, also used as the Pillow mode.
        pixel_size: Bytes per pixel.
        has_alpha:  Whether the fourth byte is an alpha channel.
        indexed:    Pixels are palette indices rather than colours.
    """

    name: str
    pixel_size: int
    has_alpha: bool = False
    indexed: bool = False

    def pitch(self, width: int) -> int:
        """Bytes per row, padded to a 4-byte boundary."""
        return (width * self.pixel_size + 3) & ~3

    def shape(self, width: int, height: int) -> tuple[int, ...]:
        if self.indexed:
            return (height, width)
        return (height, width, self.pixel_size)

    def encode(self, colour: Any) -> np.ndarray:
        """Convert a colour value to the uint8 representation stored in a canvas."""
        if self.indexed:
            return np.uint8(int(colour))
        values = [int(c) for c in colour]
        if len(values) not in (3, 4):
            msg = f"Expected an RGB or RGBA colour, got {colour!r}"
            raise ValueError(msg)
        if self.has_alpha and len(values) == 3:
            values.append(255)
        return np.array(values[: self.pixel_size], dtype=np.uint8)

    def decode(self, stored: Any) -> Any:
        """Convert a stored pixel back into a colour value."""
        if self.indexed:
            return int(stored)
        if self.has_alpha:
            return RgbaColour(*(int(c) for c in stored))
        return RgbColour(*(int(c) for c in stored))


RGB24 = PixelFormat("RGB", 3)
RGBA32 = PixelFormat("RGBA", 4, has_alpha=True)
INDEXED8 = PixelFormat("P", 1, indexed=True)
