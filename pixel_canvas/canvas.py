"""Generic raster buffers.

A :class:`Canvas` owns one contiguous ``uint8`` buffer of ``height * pitch``
bytes.  Rows are padded to a 4-byte boundary, so ``pitch`` may exceed
``width * pixel_size``.  :attr:`Canvas.pixels` is a strided numpy view over
that buffer shaped ``(height, width, channels)`` (or ``(height, width)`` for
palette indices); every drawing and transfer routine works through it.

Three concrete formats are provided:

- :class:`RgbCanvas`     24-bit RGB
- :class:`RgbaCanvas`    32-bit RGBA
- :class:`IndexedCanvas` 8-bit palette index plus a 256-entry RGB palette
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

import numpy as np

from pixel_canvas.blit import ClipResult
from pixel_canvas.blit import blit as _blit
from pixel_canvas.color_utils import grayscale_palette, luminance
from pixel_canvas.colour import (
    INDEXED8,
    RGB24,
    RGBA32,
    PixelFormat,
    RgbaColour,
    RgbColour,
)
from pixel_canvas.draw import box as _box
from pixel_canvas.draw import circle as _circle
from pixel_canvas.draw import clear as _clear
from pixel_canvas.draw import ellipse as _ellipse
from pixel_canvas.draw import line as _line
from pixel_canvas.draw import paint_fill as _paint_fill
from pixel_canvas.errors import RangeOverError

if TYPE_CHECKING:
    from pixel_canvas.compositor import Compositor
    from pixel_canvas.dithering import DitherMode
    from pixel_canvas.geometry import Rect

logger = logging.getLogger(__name__)

C = TypeVar("C")
_CanvasT = TypeVar("_CanvasT", bound="Canvas[Any]")

PALETTE_SIZE = 256


class Canvas(Generic[C]):
    """Fixed-size raster buffer holding pixels of one :class:`PixelFormat`.

    Use :meth:`create` rather than the constructor when allocation failure
    should be reported as ``None`` instead of :class:`MemoryError`.
    """

    format: ClassVar[PixelFormat]

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            msg = f"Canvas dimensions must be positive, got {width}x{height}"
            raise ValueError(msg)
        self._width = width
        self._height = height
        self._pitch = self.format.pitch(width)
        try:
            self._storage = np.zeros(height * self._pitch, dtype=np.uint8)
        except (ValueError, OverflowError) as exc:
            # numpy rejects sizes beyond the address space before allocating
            msg = f"Cannot allocate {height * self._pitch} bytes"
            raise MemoryError(msg) from exc
        strides: tuple[int, ...] = (self._pitch, self.format.pixel_size)
        if not self.format.indexed:
            strides += (1,)
        self._pixels = np.ndarray(
            self.format.shape(width, height),
            dtype=np.uint8,
            buffer=self._storage,
            strides=strides,
        )

    @classmethod
    def create(cls: type[_CanvasT], width: int, height: int) -> _CanvasT | None:
        """Allocate a canvas, returning ``None`` if memory is exhausted."""
        try:
            return cls(width, height)
        except MemoryError:
            logger.warning(
                "Could not allocate %s of %dx%d", cls.__name__, width, height,
            )
            return None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(width={self._width}, "
            f"height={self._height}, pitch={self._pitch})"
        )

    # -- Geometry ------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pitch(self) -> int:
        """Bytes per row, including padding."""
        return self._pitch

    @property
    def buffer(self) -> np.ndarray:
        """The raw ``height * pitch`` byte storage."""
        return self._storage

    @property
    def pixels(self) -> np.ndarray:
        """Writable ``(height, width[, channels])`` view over the storage."""
        return self._pixels

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    # -- Pixel access --------------------------------------------------

    def line_buffer(self, y: int) -> np.ndarray:
        """Writable view of scanline *y*. No range check."""
        return self._pixels[y]

    def pixel(self, x: int, y: int) -> C:
        """Read pixel (x, y). The caller guarantees the coordinate is valid."""
        return self.format.decode(self._pixels[y, x])

    def set_pixel(self, x: int, y: int, colour: C) -> None:
        """Write pixel (x, y). The caller guarantees the coordinate is valid."""
        self._pixels[y, x] = self.format.encode(colour)

    def at(self, x: int, y: int) -> C:
        """Read pixel (x, y), raising :class:`RangeOverError` when out of range."""
        if not self.contains(x, y):
            raise RangeOverError(x, y, self._width, self._height)
        return self.pixel(x, y)

    def set_at(self, x: int, y: int, colour: C) -> None:
        """Write pixel (x, y), raising :class:`RangeOverError` when out of range."""
        if not self.contains(x, y):
            raise RangeOverError(x, y, self._width, self._height)
        self.set_pixel(x, y, colour)

    def clone(self: _CanvasT) -> _CanvasT | None:
        """Independent deep copy, or ``None`` if allocation fails."""
        copy = type(self).create(self._width, self._height)
        if copy is not None:
            copy._storage[...] = self._storage
        return copy

    # -- Drawing -------------------------------------------------------

    def clear(self, colour: C) -> None:
        _clear(self, colour)

    def line(self, x1: int, y1: int, x2: int, y2: int, colour: C) -> None:
        _line(self, x1, y1, x2, y2, colour)

    def box(
        self, left: int, top: int, right: int, bottom: int, colour: C,
        fill: bool = False,
    ) -> None:
        _box(self, left, top, right, bottom, colour, fill)

    def ellipse(
        self, x: int, y: int, rx: int, ry: int, colour: C, fill: bool = False,
    ) -> None:
        _ellipse(self, x, y, rx, ry, colour, fill)

    def circle(self, x: int, y: int, r: int, colour: C, fill: bool = False) -> None:
        _circle(self, x, y, r, colour, fill)

    def paint_fill(self, x: int, y: int, colour: C) -> None:
        _paint_fill(self, x, y, colour)

    # -- Transfer ------------------------------------------------------

    def blt(
        self,
        src: Canvas[Any],
        src_x: int,
        src_y: int,
        width: int,
        height: int,
        dst_x: int,
        dst_y: int,
        clip_rect: Rect | None = None,
        compositor: Compositor | None = None,
    ) -> ClipResult | None:
        """Transfer a region of *src* onto this canvas. See :func:`blit`."""
        return _blit(
            self, src, src_x, src_y, width, height, dst_x, dst_y,
            clip_rect=clip_rect, compositor=compositor,
        )


class _TrueColourCanvas(Canvas[C]):
    """Operations shared by the RGB and RGBA formats."""

    def grayscale(self) -> None:
        """Replace every colour by its luminance, in place."""
        luma = luminance(self._pixels)
        self._pixels[..., 0] = luma
        self._pixels[..., 1] = luma
        self._pixels[..., 2] = luma

    def to_grayscale_indexed(self) -> IndexedCanvas | None:
        """Indexed copy whose palette entry i is gray level i."""
        indexed = IndexedCanvas.create(self._width, self._height)
        if indexed is not None:
            indexed.palette[...] = grayscale_palette()
            indexed.pixels[...] = luminance(self._pixels)
        return indexed

    def to_indexed(self, mode: DitherMode | str = "error_diffusion") -> IndexedCanvas | None:
        """256-colour copy using a median-cut palette."""
        from pixel_canvas.quantize import quantize

        return quantize(self, mode)


class RgbCanvas(_TrueColourCanvas[RgbColour]):
    format = RGB24


class RgbaCanvas(_TrueColourCanvas[RgbaColour]):
    format = RGBA32

    def strip_alpha(self) -> RgbCanvas | None:
        """Copy of the colour channels with the alpha channel dropped."""
        rgb = RgbCanvas.create(self._width, self._height)
        if rgb is not None:
            rgb.blt(self, 0, 0, self._width, self._height, 0, 0)
        return rgb


class IndexedCanvas(Canvas[int]):
    """8-bit palette-index canvas owning a 256-entry RGB palette."""

    format = INDEXED8

    def __init__(self, width: int, height: int) -> None:
        super().__init__(width, height)
        self._palette = np.zeros((PALETTE_SIZE, 3), dtype=np.uint8)

    @property
    def palette(self) -> np.ndarray:
        """The (256, 3) uint8 palette, mutable in place."""
        return self._palette

    def palette_entry(self, index: int) -> RgbColour:
        return RgbColour(*(int(c) for c in self._palette[index]))

    def set_palette_entry(self, index: int, colour: RgbColour) -> None:
        self._palette[index] = RGB24.encode(colour)

    def clone(self) -> IndexedCanvas | None:
        copy = super().clone()
        if copy is not None:
            copy._palette[...] = self._palette
        return copy

    def to_rgb(self) -> RgbCanvas | None:
        """True-colour copy with every index expanded through the palette."""
        rgb = RgbCanvas.create(self._width, self._height)
        if rgb is not None:
            rgb.blt(self, 0, 0, self._width, self._height, 0, 0)
        return rgb
