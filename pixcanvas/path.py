from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Iterable, TypeAlias

from .errors import UnsupportedOperationError
from .geometry import Line, Point
from .transform import AffineTransform


LOGGER = logging.getLogger(__name__)

DEFAULT_FLATNESS_THRESHOLD = 10.0
DEFAULT_QUADRATIC_STEPS = 10
DEFAULT_ARC_STEP = math.pi / 16
DEFAULT_MAX_SUBDIVISION_DEPTH = 24


@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class LineTo:
    point: Point


@dataclass(frozen=True)
class QuadraticCurveTo:
    control: Point
    end: Point


@dataclass(frozen=True)
class BezierCurveTo:
    control1: Point
    control2: Point
    end: Point


PathCommand: TypeAlias = MoveTo | LineTo | QuadraticCurveTo | BezierCurveTo
Cubic: TypeAlias = tuple[Point, Point, Point, Point]


@dataclass
class Path:
    """Device-space command list built against a live transform.

    Points are transformed when a command is appended, so later changes to the
    transform never move commands that are already stored.
    """

    transform: AffineTransform
    commands: list[PathCommand] = field(default_factory=list)
    start: Point | None = None
    arc_step: float = DEFAULT_ARC_STEP

    def begin(self) -> None:
        self.commands = []
        self.start = None

    def move_to(self, x: float, y: float) -> None:
        pt = self.transform.transform_point(Point(x, y))
        self.start = pt
        self.commands.append(MoveTo(pt))

    def line_to(self, x: float, y: float) -> None:
        self.commands.append(LineTo(self.transform.transform_point(Point(x, y))))

    def quadratic_curve_to(self, cpx: float, cpy: float, x: float, y: float) -> None:
        tp = self.transform.transform_point
        self.commands.append(QuadraticCurveTo(tp(Point(cpx, cpy)), tp(Point(x, y))))

    def bezier_curve_to(
        self, cp1x: float, cp1y: float, cp2x: float, cp2y: float, x: float, y: float
    ) -> None:
        tp = self.transform.transform_point
        self.commands.append(
            BezierCurveTo(tp(Point(cp1x, cp1y)), tp(Point(cp2x, cp2y)), tp(Point(x, y)))
        )

    def close_path(self) -> None:
        if self.start is None:
            return
        self.commands.append(LineTo(self.start))

    def arc(
        self,
        x: float,
        y: float,
        radius: float,
        start_angle: float,
        end_angle: float,
        anticlockwise: bool = False,
    ) -> None:
        """Append a polyline approximation of a circular arc.

        Starts a new sub-path at the arc start, then steps by ``arc_step``
        radians toward ``end_angle`` and finishes exactly on the end point.
        """
        if radius < 0:
            raise ValueError("arc radius must be >= 0")

        def point_at(angle: float) -> tuple[float, float]:
            return (x + math.cos(angle) * radius, y + math.sin(angle) * radius)

        self.move_to(*point_at(start_angle))
        angle = start_angle
        if anticlockwise:
            while angle >= end_angle:
                self.line_to(*point_at(angle))
                angle -= self.arc_step
        else:
            while angle <= end_angle:
                self.line_to(*point_at(angle))
                angle += self.arc_step
        self.line_to(*point_at(end_angle))

    def arc_to(self, *args: float) -> None:
        raise UnsupportedOperationError("arc_to is not supported; compose it from bezier_curve_to")

    def rect(self, *args: float) -> None:
        raise UnsupportedOperationError("rect is not supported; compose it from move_to/line_to")

    def ellipse(self, *args: float) -> None:
        raise UnsupportedOperationError("ellipse is not supported; compose it from bezier_curve_to")

    def to_lines(
        self,
        *,
        flatness_threshold: float = DEFAULT_FLATNESS_THRESHOLD,
        quadratic_steps: int = DEFAULT_QUADRATIC_STEPS,
        max_depth: int = DEFAULT_MAX_SUBDIVISION_DEPTH,
    ) -> list[Line]:
        return flatten_path(
            self.commands,
            flatness_threshold=flatness_threshold,
            quadratic_steps=quadratic_steps,
            max_depth=max_depth,
        )


def flatten_path(
    commands: Iterable[PathCommand],
    *,
    flatness_threshold: float = DEFAULT_FLATNESS_THRESHOLD,
    quadratic_steps: int = DEFAULT_QUADRATIC_STEPS,
    max_depth: int = DEFAULT_MAX_SUBDIVISION_DEPTH,
) -> list[Line]:
    """Convert path commands into an ordered list of line segments.

    Curves start from the current point; commands that need a current point
    before any ``MoveTo`` use their own first point instead.
    """
    lines: list[Line] = []
    current: Point | None = None
    for cmd in commands:
        if isinstance(cmd, MoveTo):
            current = cmd.point
        elif isinstance(cmd, LineTo):
            if current is None:
                current = cmd.point
                continue
            lines.append(Line(current, cmd.point))
            current = cmd.point
        elif isinstance(cmd, QuadraticCurveTo):
            if current is None:
                current = cmd.control
            for pt in quadratic_points(current, cmd.control, cmd.end, quadratic_steps):
                lines.append(Line(current, pt))
                current = pt
        elif isinstance(cmd, BezierCurveTo):
            if current is None:
                current = cmd.control1
            curve = (current, cmd.control1, cmd.control2, cmd.end)
            for pt in flatten_cubic(curve, flatness_threshold, max_depth=max_depth):
                lines.append(Line(current, pt))
                current = pt
        else:
            raise TypeError(f"unknown path command: {cmd!r}")
    return lines


def quadratic_at(p0: Point, p1: Point, p2: Point, t: float) -> Point:
    mt = 1.0 - t
    x = mt * mt * p0.x + 2 * mt * t * p1.x + t * t * p2.x
    y = mt * mt * p0.y + 2 * mt * t * p1.y + t * t * p2.y
    return Point(x, y)


def quadratic_points(p0: Point, p1: Point, p2: Point, steps: int = DEFAULT_QUADRATIC_STEPS) -> list[Point]:
    """Samples at t = 0, 1/steps, ..., (steps-1)/steps.

    The end point itself is not sampled, so the polyline stops one step short
    of it and the current point is left at the last sample.
    """
    if steps <= 0:
        raise ValueError("quadratic steps must be > 0")
    return [quadratic_at(p0, p1, p2, i / steps) for i in range(steps)]


def cubic_at(curve: Cubic, t: float) -> Point:
    p0, p1, p2, p3 = curve
    mt = 1.0 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return Point(
        a * p0.x + b * p1.x + c * p2.x + d * p3.x,
        a * p0.y + b * p1.y + c * p2.y + d * p3.y,
    )


def flatness(curve: Cubic) -> float:
    """Squared control-point deviation from the chord, max of both ends per axis."""
    p0, c1, c2, p3 = curve
    ux = (3 * c1.x - 2 * p0.x - p3.x) ** 2
    uy = (3 * c1.y - 2 * p0.y - p3.y) ** 2
    vx = (3 * c2.x - 2 * p3.x - p0.x) ** 2
    vy = (3 * c2.y - 2 * p3.y - p0.y) ** 2
    return max(ux, vx) + max(uy, vy)


def split_cubic(curve: Cubic, t: float = 0.5) -> tuple[Cubic, Cubic]:
    p1, p2, p3, p4 = curve
    p12 = p1.lerp(p2, t)
    p23 = p2.lerp(p3, t)
    p34 = p3.lerp(p4, t)
    p123 = p12.lerp(p23, t)
    p234 = p23.lerp(p34, t)
    p1234 = p123.lerp(p234, t)
    return (p1, p12, p123, p1234), (p1234, p234, p34, p4)


def flatten_cubic(
    curve: Cubic,
    threshold: float = DEFAULT_FLATNESS_THRESHOLD,
    *,
    max_depth: int = DEFAULT_MAX_SUBDIVISION_DEPTH,
) -> list[Point]:
    """Polyline vertices after the curve start, ending on the curve end.

    Subdivision runs on an explicit stack; pieces reaching ``max_depth`` are
    accepted as-is.
    """
    points: list[Point] = []
    stack: list[tuple[Cubic, int]] = [(curve, 0)]
    capped = False
    while stack:
        piece, depth = stack.pop()
        if flatness(piece) < threshold or depth >= max_depth:
            if depth >= max_depth:
                capped = True
            points.append(piece[3])
            continue
        left, right = split_cubic(piece, 0.5)
        # right pushed first so the left half is emitted first
        stack.append((right, depth + 1))
        stack.append((left, depth + 1))
    if capped:
        LOGGER.debug("cubic subdivision hit depth cap %d", max_depth)
    return points
