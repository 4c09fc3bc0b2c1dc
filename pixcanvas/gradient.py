from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, TypeAlias

from .color import bytes_to_color, color_to_bytes, parse_color
from .errors import InvalidGradientError
from .geometry import Point, clamp


DEFAULT_RADIAL_RADIUS = 10.0


class Style(Protocol):
    def color_at(self, x: float, y: float) -> int:
        ...


@dataclass(frozen=True)
class SolidColor:
    color: int

    def color_at(self, x: float, y: float) -> int:
        return self.color


@dataclass(frozen=True)
class ColorStop:
    offset: float
    color: int


@dataclass
class Gradient:
    """Ordered colour stops; only the first two take part in interpolation."""

    stops: list[ColorStop] = field(default_factory=list, init=False)

    def add_color_stop(self, offset: float, color: str | int) -> None:
        if offset < 0.0 or offset > 1.0:
            raise ValueError(f"colour stop offset must be in [0, 1], got {offset}")
        rgba = parse_color(color) if isinstance(color, str) else int(color)
        self.stops.append(ColorStop(offset=float(offset), color=rgba))

    def lerp_stops(self, t: float) -> int:
        if len(self.stops) < 2:
            raise InvalidGradientError(
                f"gradient needs at least 2 colour stops, has {len(self.stops)}"
            )
        first = color_to_bytes(self.stops[0].color)
        second = color_to_bytes(self.stops[1].color)
        channels = [
            (a / 255.0 + (b / 255.0 - a / 255.0) * t) * 255.0
            for a, b in zip(first[:3], second[:3])
        ]
        return bytes_to_color(channels[0], channels[1], channels[2], 255)


@dataclass
class LinearGradient(Gradient):
    start: Point
    end: Point

    def color_at(self, x: float, y: float) -> int:
        axis = self.end - self.start
        length = axis.magnitude()
        if length == 0.0:
            return self.lerp_stops(0.0)
        # projection of the offset onto the axis, as a fraction of its length
        t = (Point(x, y) - self.start).dot(axis) / (length * length)
        return self.lerp_stops(clamp(t, 0.0, 1.0))


@dataclass
class RadialGradient(Gradient):
    center: Point
    radius: float = DEFAULT_RADIAL_RADIUS

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError("radial gradient radius must be > 0")

    def color_at(self, x: float, y: float) -> int:
        t = Point(x, y).distance(self.center) / self.radius
        return self.lerp_stops(clamp(t, 0.0, 1.0))


PaintStyle: TypeAlias = SolidColor | LinearGradient | RadialGradient
