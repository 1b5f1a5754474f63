"""Integer points and half-open rectangles in raster coordinates."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    x: int = 0
    y: int = 0

    def add(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def sub(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Rectangle:
    """Pixels (x, y) with ``min.x <= x < max.x`` and ``min.y <= y < max.y``.

    A rectangle whose max does not exceed its min on either axis is empty.
    """

    min: Point = Point()
    max: Point = Point()

    @classmethod
    def of(cls, x0: int, y0: int, x1: int, y1: int) -> Rectangle:
        """Build a rectangle, swapping coordinates given in the wrong order."""
        if x0 > x1:
            x0, x1 = x1, x0
        if y0 > y1:
            y0, y1 = y1, y0
        return cls(Point(x0, y0), Point(x1, y1))

    @classmethod
    def sized(cls, width: int, height: int) -> Rectangle:
        """Rectangle anchored at the origin."""
        return cls.of(0, 0, width, height)

    @property
    def dx(self) -> int:
        return self.max.x - self.min.x

    @property
    def dy(self) -> int:
        return self.max.y - self.min.y

    def empty(self) -> bool:
        return self.min.x >= self.max.x or self.min.y >= self.max.y

    def add(self, p: Point) -> Rectangle:
        """Translate by *p*."""
        return Rectangle(self.min.add(p), self.max.add(p))

    def sub(self, p: Point) -> Rectangle:
        """Translate by -*p*."""
        return Rectangle(self.min.sub(p), self.max.sub(p))

    def intersect(self, other: Rectangle) -> Rectangle:
        """Largest rectangle contained in both; the zero rectangle if none."""
        r = Rectangle(
            Point(max(self.min.x, other.min.x), max(self.min.y, other.min.y)),
            Point(min(self.max.x, other.max.x), min(self.max.y, other.max.y)),
        )
        if r.empty():
            return ZR
        return r

    def eq(self, other: Rectangle) -> bool:
        """Equality where every empty rectangle equals every other."""
        return self == other or (self.empty() and other.empty())

    def contains(self, p: Point) -> bool:
        return self.min.x <= p.x < self.max.x and self.min.y <= p.y < self.max.y


ZR = Rectangle()
