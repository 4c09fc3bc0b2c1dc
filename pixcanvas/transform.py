from __future__ import annotations

from dataclasses import dataclass
import math

from .geometry import Point


@dataclass(frozen=True)
class Matrix:
    """2x3 affine matrix ``[a c e; b d f]`` mapping (x, y) to (a*x + c*y + e, b*x + d*y + f)."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    def multiply(self, other: "Matrix") -> "Matrix":
        """Return ``self * other``: ``other`` is applied to points first."""
        return Matrix(
            a=self.a * other.a + self.c * other.b,
            b=self.b * other.a + self.d * other.b,
            c=self.a * other.c + self.c * other.d,
            d=self.b * other.c + self.d * other.d,
            e=self.a * other.e + self.c * other.f + self.e,
            f=self.b * other.e + self.d * other.f + self.f,
        )

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)


IDENTITY = Matrix()


class AffineTransform:
    """Current transform plus a LIFO stack of saved matrices.

    Operations follow the canvas convention: each call composes onto the
    current matrix, so the most recent operation acts on user points first.
    """

    def __init__(self) -> None:
        self._matrix = IDENTITY
        self._stack: list[Matrix] = []

    @property
    def matrix(self) -> Matrix:
        return self._matrix

    @property
    def depth(self) -> int:
        return len(self._stack)

    def translate(self, dx: float, dy: float) -> None:
        self._matrix = self._matrix.multiply(Matrix(e=dx, f=dy))

    def rotate(self, radians: float) -> None:
        cos = math.cos(radians)
        sin = math.sin(radians)
        self._matrix = self._matrix.multiply(Matrix(a=cos, b=sin, c=-sin, d=cos))

    def scale(self, sx: float, sy: float) -> None:
        self._matrix = self._matrix.multiply(Matrix(a=sx, d=sy))

    def reset(self) -> None:
        self._matrix = IDENTITY

    def save(self) -> None:
        self._stack.append(self._matrix)

    def restore(self) -> None:
        if self._stack:
            self._matrix = self._stack.pop()

    def transform_point(self, point: Point) -> Point:
        x, y = self._matrix.apply(point.x, point.y)
        return Point(x, y)

    def is_axis_aligned(self) -> bool:
        return self._matrix.b == 0.0 and self._matrix.c == 0.0

    def copy(self) -> "AffineTransform":
        clone = AffineTransform()
        clone._matrix = self._matrix
        clone._stack = list(self._stack)
        return clone
