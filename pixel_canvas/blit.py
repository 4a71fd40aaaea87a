"""Clipped rectangular pixel transfer between two canvases."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, NamedTuple

from pixel_canvas.compositor import Compositor, PaletteLookup, Replace

if TYPE_CHECKING:
    from pixel_canvas.canvas import Canvas
    from pixel_canvas.geometry import Rect

logger = logging.getLogger(__name__)


class ClipResult(NamedTuple):
    """Overlap consistent with both canvases: same size on either side."""

    src_x: int
    src_y: int
    dst_x: int
    dst_y: int
    width: int
    height: int


def clip_transfer(
    src_x: int,
    src_y: int,
    src_width: int,
    src_height: int,
    blt_width: int,
    blt_height: int,
    dst_x: int,
    dst_y: int,
    dst_width: int,
    dst_height: int,
    clip_rect: Rect | None = None,
) -> ClipResult | None:
    """Compute the region of a transfer that every constraint allows.

    The requested ``blt_width x blt_height`` block at (src_x, src_y) is first
    clipped to the source extent; the destination origin moves by however
    much the source's top-left edge was trimmed.  The shifted destination
    block is then clipped to the destination extent and, if given, to the
    half-open *clip_rect*.

    Returns:
        The overlap, or ``None`` when nothing remains to transfer.
    """
    s_left = max(src_x, 0)
    s_top = max(src_y, 0)
    s_right = min(src_x + blt_width, src_width)
    s_bottom = min(src_y + blt_height, src_height)
    if s_left >= s_right or s_top >= s_bottom:
        return None

    dst_x += s_left - src_x
    dst_y += s_top - src_y
    blt_width = s_right - s_left
    blt_height = s_bottom - s_top

    d_left = max(dst_x, 0)
    d_top = max(dst_y, 0)
    d_right = min(dst_x + blt_width, dst_width)
    d_bottom = min(dst_y + blt_height, dst_height)
    if clip_rect is not None:
        clip = clip_rect.normalized()
        d_left = max(d_left, clip.left)
        d_top = max(d_top, clip.top)
        d_right = min(d_right, clip.right)
        d_bottom = min(d_bottom, clip.bottom)
    if d_left >= d_right or d_top >= d_bottom:
        return None

    return ClipResult(
        src_x=s_left + d_left - dst_x,
        src_y=s_top + d_top - dst_y,
        dst_x=d_left,
        dst_y=d_top,
        width=d_right - d_left,
        height=d_bottom - d_top,
    )


def default_compositor(src: Canvas[Any], dst: Canvas[Any]) -> Compositor:
    """Replace, or a palette lookup when indices go onto a true-colour canvas."""
    if src.format.indexed and not dst.format.indexed:
        return PaletteLookup(src.palette)  # type: ignore[attr-defined]
    return Replace()


def blit(
    dst: Canvas[Any],
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
    """Transfer ``src[src_y:+height, src_x:+width]`` onto *dst* at (dst_x, dst_y).

    Args:
        dst, src:   Distinct canvases; formats may differ.
        clip_rect:  Region of *dst* that may change (``None`` = all of it).
        compositor: Pixel transfer function, see :mod:`pixel_canvas.compositor`.
            Defaults to :func:`default_compositor`.

    Returns:
        The region actually transferred, or ``None`` if nothing overlapped.
    """
    if src is dst:
        msg = "Cannot blit a canvas onto itself"
        raise ValueError(msg)
    if compositor is None:
        compositor = default_compositor(src, dst)

    clip = clip_transfer(
        src_x, src_y, src.width, src.height, width, height,
        dst_x, dst_y, dst.width, dst.height, clip_rect,
    )
    if clip is None:
        logger.debug("Blit %dx%d at (%d, %d): no overlap", width, height, dst_x, dst_y)
        return None

    src_block = src.pixels[
        clip.src_y:clip.src_y + clip.height, clip.src_x:clip.src_x + clip.width,
    ]
    dst_block = dst.pixels[
        clip.dst_y:clip.dst_y + clip.height, clip.dst_x:clip.dst_x + clip.width,
    ]
    compositor(src_block, dst_block)
    return clip
