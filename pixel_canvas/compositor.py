"""Per-pixel transfer functions used by :func:`pixel_canvas.blit.blit`.

A compositor is called once per clipped block with two equally-sized numpy
views: ``src`` of shape ``(h, w, 3|4)`` (or ``(h, w)`` for palette indices)
and ``dst`` of shape ``(h, w, 3|4)``, and writes its result into ``dst``.
The formulas are applied independently to every pixel pair, so the whole
block is processed with vectorised integer arithmetic.

All channel maths is integer (floor division, matching the operands'
non-negative range) and every result is clamped to ``[0, 255]``.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

_MAX = 255
_MAX_SQUARED = _MAX * _MAX  # 65025


class Compositor(Protocol):
    def __call__(self, src: np.ndarray, dst: np.ndarray) -> None: ...


def _require_true_colour(block: np.ndarray, role: str, name: str) -> None:
    if block.ndim != 3:
        msg = f"{name} needs a true-colour {role}, got palette indices"
        raise TypeError(msg)


def _channels(block: np.ndarray) -> np.ndarray:
    return block[..., :3].astype(np.int32)


def _alpha(block: np.ndarray) -> np.ndarray | None:
    if block.shape[-1] < 4:
        return None
    return block[..., 3:4].astype(np.int32)


def _clamp(values: np.ndarray) -> np.ndarray:
    return np.clip(values, 0, _MAX).astype(np.uint8)


def _blend(
    src_rgb: np.ndarray, dst: np.ndarray, weight: np.ndarray | int, scale: int,
) -> None:
    """``dst = src * weight / scale + dst * (scale - weight) / scale``."""
    dst_rgb = _channels(dst)
    dst[..., :3] = _clamp(
        np.clip(src_rgb * weight // scale, 0, _MAX)
        + np.clip(dst_rgb * (scale - weight) // scale, 0, _MAX),
    )
    dst_alpha = _alpha(dst)
    if dst_alpha is not None:
        dst[..., 3:4] = _clamp(
            np.clip(weight * _MAX // scale, 0, _MAX)
            + np.clip(dst_alpha * (scale - weight) // scale, 0, _MAX),
        )


class Replace:
    """Plain copy.

    RGB onto RGBA keeps the destination alpha; RGBA onto RGB drops the
    source alpha; same-format copies are verbatim.
    """

    def __call__(self, src: np.ndarray, dst: np.ndarray) -> None:
        if src.ndim != dst.ndim:
            msg = (
                "Replace cannot mix palette indices and colours; "
                "use PaletteLookup for indexed sources"
            )
            raise TypeError(msg)
        if dst.ndim == 2 or src.shape[-1] == dst.shape[-1]:
            dst[...] = src
        else:
            dst[..., :3] = src[..., :3]


class Additive:
    """``dst = dst + src`` per RGB channel. Destination alpha is untouched."""

    def __call__(self, src: np.ndarray, dst: np.ndarray) -> None:
        _require_true_colour(src, "source", "Additive")
        _require_true_colour(dst, "destination", "Additive")
        dst[..., :3] = _clamp(_channels(dst) + _channels(src))


class Multiplicative:
    """``dst = dst * src / 255`` per RGB channel. Destination alpha is untouched."""

    def __call__(self, src: np.ndarray, dst: np.ndarray) -> None:
        _require_true_colour(src, "source", "Multiplicative")
        _require_true_colour(dst, "destination", "Multiplicative")
        dst[..., :3] = _clamp(_channels(dst) * _channels(src) // _MAX)


class AlphaBlend:
    """Blend using the source's own alpha (an RGB source counts as opaque).

    ``dst.rgb   = src.rgb * a / 255 + dst.rgb * (255 - a) / 255``
    ``dst.alpha = a + dst.alpha * (255 - a) / 255``
    """

    def __call__(self, src: np.ndarray, dst: np.ndarray) -> None:
        _require_true_colour(src, "source", "AlphaBlend")
        _require_true_colour(dst, "destination", "AlphaBlend")
        weight = _alpha(src)
        _blend(_channels(src), dst, _MAX if weight is None else weight, _MAX)


class FixedAlphaBlend:
    """Blend using a constant alpha.

    With an RGBA source the constant is multiplied with each pixel's own
    alpha, and the blend is carried out on the 0..65025 product scale.
    """

    def __init__(self, alpha: int) -> None:
        if not 0 <= alpha <= _MAX:
            msg = f"alpha must be within 0..255, got {alpha}"
            raise ValueError(msg)
        self.alpha = alpha

    def __repr__(self) -> str:
        return f"FixedAlphaBlend({self.alpha})"

    def __call__(self, src: np.ndarray, dst: np.ndarray) -> None:
        _require_true_colour(src, "source", "FixedAlphaBlend")
        _require_true_colour(dst, "destination", "FixedAlphaBlend")
        src_alpha = _alpha(src)
        if src_alpha is None:
            _blend(_channels(src), dst, self.alpha, _MAX)
        else:
            _blend(_channels(src), dst, self.alpha * src_alpha, _MAX_SQUARED)


class PaletteLookup:
    """Copy palette indices as the colours they name in *palette*.

    Destination alpha is left as it was.
    """

    def __init__(self, palette: np.ndarray) -> None:
        self.palette = palette

    def __call__(self, src: np.ndarray, dst: np.ndarray) -> None:
        if src.ndim != 2:
            msg = "PaletteLookup needs a palette-index source"
            raise TypeError(msg)
        _require_true_colour(dst, "destination", "PaletteLookup")
        dst[..., :3] = self.palette[src]
