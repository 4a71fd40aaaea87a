"""Exception types raised by the canvas layer."""

from __future__ import annotations


class RasterError(Exception):
    """Base class for errors raised by pixel_canvas."""


class RangeOverError(RasterError, IndexError):
    """A checked pixel access fell outside ``[0, width) x [0, height)``."""

    def __init__(self, x: int, y: int, width: int, height: int) -> None:
        super().__init__(
            f"pixel ({x}, {y}) is outside the {width}x{height} canvas",
        )
        self.x = x
        self.y = y
