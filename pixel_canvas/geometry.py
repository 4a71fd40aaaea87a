"""Plain geometric value types: points and rectangles."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass
class Rect:
    """Rectangle given by its edges.

    The edges may be supplied in any order; :meth:`normalize` swaps them so
    that ``left <= right`` and ``top <= bottom``.  When used as a clip
    rectangle for a blit, the region is half-open: ``[left, right) x
    [top, bottom)``.
    """

    left: int
    top: int
    right: int
    bottom: int

    @classmethod
    def from_xywh(cls, x: int, y: int, width: int, height: int) -> Rect:
        return cls(x, y, x + width, y + height)

    def normalize(self) -> Rect:
        if self.left > self.right:
            self.left, self.right = self.right, self.left
        if self.top > self.bottom:
            self.top, self.bottom = self.bottom, self.top
        return self

    def normalized(self) -> Rect:
        """Return a normalized copy, leaving *self* untouched."""
        return Rect(self.left, self.top, self.right, self.bottom).normalize()

    def is_normalized(self) -> bool:
        return self.left <= self.right and self.top <= self.bottom

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top
