"""
In-place drawing primitives for :class:`~pixel_canvas.canvas.Canvas`.

All routines clip against the canvas: anything falling outside
``[0, width) x [0, height)`` is silently skipped, and shapes lying entirely
outside are no-ops.  Colours are encoded once per call and written straight
into the canvas' numpy view.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from pixel_canvas.canvas import Canvas


def clear(canvas: Canvas[Any], colour: Any) -> None:
    canvas.pixels[...] = canvas.format.encode(colour)


def line(
    canvas: Canvas[Any], x1: int, y1: int, x2: int, y2: int, colour: Any,
) -> None:
    """Draw a segment with Bresenham's algorithm.

    The segment is walked from both endpoints towards the middle.  Endpoints
    are put in a canonical order first, so swapping them paints exactly the
    same pixels.
    """
    w, h = canvas.width, canvas.height
    if ((x1 < 0 and x2 < 0) or (x1 >= w and x2 >= w)
            or (y1 < 0 and y2 < 0) or (y1 >= h and y2 >= h)):
        return

    if (x1, y1) > (x2, y2):
        x1, y1, x2, y2 = x2, y2, x1, y1

    pix = canvas.pixels
    value = canvas.format.encode(colour)

    dx = x2 - x1
    dy = y2 - y1
    sx = (dx > 0) - (dx < 0)
    sy = (dy > 0) - (dy < 0)
    dx = abs(dx)
    dy = abs(dy)

    if dy == 0:
        left = max(0, min(x1, x2))
        right = min(w - 1, max(x1, x2))
        pix[y1, left:right + 1] = value
        return
    if dx == 0:
        top = max(0, min(y1, y2))
        bottom = min(h - 1, max(y1, y2))
        pix[top:bottom + 1, x1] = value
        return

    def plot(x: int, y: int) -> None:
        if 0 <= x < w and 0 <= y < h:
            pix[y, x] = value

    # (xa, ya) walks forward from the first endpoint, (xb, yb) backward
    # from the second.
    xa, ya, xb, yb = x1, y1, x2, y2
    if dx >= dy:
        e = -dx
        for _ in range((dx + 1) // 2):
            plot(xa, ya)
            plot(xb, yb)
            xa += sx
            xb -= sx
            e += 2 * dy
            if e >= 0:
                ya += sy
                yb -= sy
                e -= 2 * dx
        if dx % 2 == 0:
            plot(xa, ya)
    else:
        e = -dy
        for _ in range((dy + 1) // 2):
            plot(xa, ya)
            plot(xb, yb)
            ya += sy
            yb -= sy
            e += 2 * dx
            if e >= 0:
                xa += sx
                xb -= sx
                e -= 2 * dy
        if dy % 2 == 0:
            plot(xa, ya)


def box(
    canvas: Canvas[Any],
    left: int,
    top: int,
    right: int,
    bottom: int,
    colour: Any,
    fill: bool = False,
) -> None:
    """Draw the rectangle with inclusive corners (left, top)-(right, bottom)."""
    if left > right:
        left, right = right, left
    if top > bottom:
        top, bottom = bottom, top

    w, h = canvas.width, canvas.height
    if left >= w or right < 0 or top >= h or bottom < 0:
        return

    pix = canvas.pixels
    value = canvas.format.encode(colour)

    x_lo = max(left, 0)
    x_hi = min(right, w - 1)
    y_lo = max(top, 0)
    y_hi = min(bottom, h - 1)

    if fill:
        pix[y_lo:y_hi + 1, x_lo:x_hi + 1] = value
        return

    if top >= 0:
        pix[top, x_lo:x_hi + 1] = value
    if bottom < h:
        pix[bottom, x_lo:x_hi + 1] = value
    if left >= 0:
        pix[y_lo:y_hi + 1, left] = value
    if right < w:
        pix[y_lo:y_hi + 1, right] = value


def ellipse(
    canvas: Canvas[Any],
    x: int,
    y: int,
    rx: int,
    ry: int,
    colour: Any,
    fill: bool = False,
) -> None:
    """Draw an axis-aligned ellipse centred on (x, y) (Michener's algorithm).

    ``p`` runs along the short-radius direction and ``q`` along the long
    one; both are squashed onto the real radii per iteration, which yields
    four arcs (two symmetric pairs) each step.
    """
    if rx == 0 or ry == 0:
        return
    rx = abs(rx)
    ry = abs(ry)

    pix = canvas.pixels
    value = canvas.format.encode(colour)
    w, h = canvas.width, canvas.height

    p = 0
    if rx < ry:
        e = 2 - 3 * ry
        q = ry
    else:
        e = 2 - 3 * rx
        q = rx

    while p <= q:
        if rx < ry:
            dx1, dy1 = p * rx // ry, q
            dx2, dy2 = q * rx // ry, p
        else:
            dx1, dy1 = p, q * ry // rx
            dx2, dy2 = q, p * ry // rx

        _ellipse_arcs(pix, w, h, x, y, dx1, dy1, value, fill)
        _ellipse_arcs(pix, w, h, x, y, dx2, dy2, value, fill)

        if e < 0:
            e += p * 4 + 6
        else:
            e += (p - q) * 4 + 10
            q -= 1
        p += 1


def _ellipse_arcs(
    pix: np.ndarray,
    w: int,
    h: int,
    x: int,
    y: int,
    dx: int,
    dy: int,
    value: np.ndarray,
    fill: bool,
) -> None:
    """Plot the four points (x +/- dx, y +/- dy), or the two spans between them."""
    if x - dx >= w or x + dx < 0 or y - dy >= h or y + dy < 0:
        return

    if fill:
        left = max(x - dx, 0)
        right = min(x + dx, w - 1)
        if y - dy >= 0:
            pix[y - dy, left:right + 1] = value
        if y + dy < h:
            pix[y + dy, left:right + 1] = value
        return

    for yy in (y - dy, y + dy):
        if 0 <= yy < h:
            if x - dx >= 0:
                pix[yy, x - dx] = value
            if x + dx < w:
                pix[yy, x + dx] = value


def circle(
    canvas: Canvas[Any], x: int, y: int, r: int, colour: Any, fill: bool = False,
) -> None:
    ellipse(canvas, x, y, r, r, colour, fill)


def paint_fill(canvas: Canvas[Any], x: int, y: int, colour: Any) -> None:
    """Flood-fill the 4-connected region containing (x, y).

    Stack-based scanline fill: each popped seed is extended left and right
    along its row.  While scanning, the rows above and below are watched;
    a new seed is pushed whenever a matching run starts there, so each run
    gets one seed rather than one per pixel.
    """
    if not canvas.contains(x, y):
        return

    pix = canvas.pixels
    value = canvas.format.encode(colour)
    from_value = pix[y, x].copy()
    if np.array_equal(from_value, value):
        return

    # match[y, x] tracks "pixel still equals the original colour".
    if pix.ndim == 3:
        match = np.all(pix == from_value, axis=-1)
    else:
        match = pix == from_value

    w, h = canvas.width, canvas.height
    stack: list[tuple[int, int]] = [(x, y)]

    while stack:
        sx, sy = stack.pop()
        row = match[sy]
        if not row[sx]:
            continue  # already painted from another seed

        above = match[sy - 1] if sy > 0 else None
        below = match[sy + 1] if sy + 1 < h else None

        # Up/down continuity flags, tracked separately for each direction.
        up_left = up_right = above is not None and bool(above[sx])
        if up_left:
            stack.append((sx, sy - 1))
        down_left = down_right = below is not None and bool(below[sx])
        if down_left:
            stack.append((sx, sy + 1))

        row[sx] = False

        left = sx - 1
        while left >= 0 and row[left]:
            if above is not None:
                if up_left and not above[left]:
                    up_left = False
                elif not up_left and above[left]:
                    up_left = True
                    stack.append((left, sy - 1))
            if below is not None:
                if down_left and not below[left]:
                    down_left = False
                elif not down_left and below[left]:
                    down_left = True
                    stack.append((left, sy + 1))
            row[left] = False
            left -= 1

        right = sx + 1
        while right < w and row[right]:
            if above is not None:
                if up_right and not above[right]:
                    up_right = False
                elif not up_right and above[right]:
                    up_right = True
                    stack.append((right, sy - 1))
            if below is not None:
                if down_right and not below[right]:
                    down_right = False
                elif not down_right and below[right]:
                    down_right = True
                    stack.append((right, sy + 1))
            row[right] = False
            right += 1

        pix[sy, left + 1:right] = value
