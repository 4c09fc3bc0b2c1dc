from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> "Point":
        return Point(self.x * factor, self.y * factor)

    def dot(self, other: "Point") -> float:
        return self.x * other.x + self.y * other.y

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def distance(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def lerp(self, other: "Point", t: float) -> "Point":
        return Point(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)


@dataclass(frozen=True)
class Line:
    start: Point
    end: Point


@dataclass(frozen=True)
class Bounds:
    x: float
    y: float
    x2: float
    y2: float


def calc_bounds(lines: Iterable[Line]) -> Bounds | None:
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    seen = False
    for line in lines:
        seen = True
        for pt in (line.start, line.end):
            min_x = min(min_x, pt.x)
            min_y = min(min_y, pt.y)
            max_x = max(max_x, pt.x)
            max_y = max(max_y, pt.y)
    if not seen:
        return None
    return Bounds(min_x, min_y, max_x, max_y)


def sorted_intersections(lines: Iterable[Line], y: float) -> list[float]:
    """X positions where ``lines`` cross the horizontal line at ``y``, ascending.

    A segment crosses when exactly one endpoint is at or below ``y`` (>=) and
    the other strictly above it, so shared vertices are counted once.
    """
    xs: list[float] = []
    for line in lines:
        a = line.start
        b = line.end
        if (a.y < y <= b.y) or (b.y < y <= a.y):
            xs.append(a.x + (y - a.y) / (b.y - a.y) * (b.x - a.x))
    xs.sort()
    return xs


def fract(value: float) -> float:
    return value - math.floor(value)


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value
