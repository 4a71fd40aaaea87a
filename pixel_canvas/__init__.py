"""
Pixel Canvas
============

Generic raster buffers with drawing primitives, clipped compositing blits
and 256-colour reduction:

- **Canvas**: RGB, RGBA and palette-indexed pixel buffers
- **Blit**: clipped transfer through replace / additive / multiplicative /
  alpha-blend compositors
- **Quantize**: median-cut palettes, bucketed nearest-colour search and
  Jarvis-Judice-Ninke error diffusion
"""

__version__ = "0.1.0"

from pixel_canvas.blit import ClipResult, blit, clip_transfer
from pixel_canvas.canvas import Canvas, IndexedCanvas, RgbaCanvas, RgbCanvas
from pixel_canvas.colour import RgbaColour, RgbColour
from pixel_canvas.compositor import (
    Additive,
    AlphaBlend,
    FixedAlphaBlend,
    Multiplicative,
    PaletteLookup,
    Replace,
)
from pixel_canvas.config import QuantizeConfig
from pixel_canvas.dithering import DitherMode
from pixel_canvas.errors import RangeOverError, RasterError
from pixel_canvas.geometry import Point, Rect
from pixel_canvas.nearest import NearestColourIndex, build_nearest_colour_index
from pixel_canvas.palette import SplitRule, generate_palette
from pixel_canvas.quantize import quantize

__all__ = [
    "Additive",
    "AlphaBlend",
    "Canvas",
    "ClipResult",
    "DitherMode",
    "FixedAlphaBlend",
    "IndexedCanvas",
    "Multiplicative",
    "NearestColourIndex",
    "PaletteLookup",
    "Point",
    "QuantizeConfig",
    "RangeOverError",
    "RasterError",
    "Rect",
    "Replace",
    "RgbCanvas",
    "RgbColour",
    "RgbaCanvas",
    "RgbaColour",
    "SplitRule",
    "blit",
    "build_nearest_colour_index",
    "clip_transfer",
    "generate_palette",
    "quantize",
]
