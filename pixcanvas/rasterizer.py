from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import math
from typing import Callable, Sequence

from .color import scale_alpha
from .geometry import Line, calc_bounds, fract, sorted_intersections
from .gradient import Style


PixelSink = Callable[[int, int, int], None]

# below this many rows a worker pool costs more than it saves
_MIN_PARALLEL_ROWS = 64


class Rasterizer:
    """Scan converts flattened line sets into calls on a pixel sink.

    The sink receives device pixel coordinates and a packed colour; clipping
    and compositing happen behind it. Fills use the even-odd rule on integer
    scanlines and cover every column from ``floor(enter)`` to ``floor(exit)``.
    """

    def __init__(self, width: int, height: int, plot: PixelSink, *, workers: int = 1) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be > 0")
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.width = width
        self.height = height
        self._plot = plot
        self._workers = workers

    # --- fill -------------------------------------------------------------

    def scanline_rows(self, lines: Sequence[Line]) -> range:
        bounds = calc_bounds(lines)
        if bounds is None:
            return range(0)
        first = max(0, math.ceil(bounds.y))
        last = min(self.height - 1, math.floor(bounds.y2))
        return range(first, last + 1)

    def spans(self, lines: Sequence[Line], rows: range) -> list[list[float]]:
        """Sorted crossings for every row; order matches ``rows`` for any worker count."""
        if self._workers == 1 or len(rows) < _MIN_PARALLEL_ROWS:
            return [sorted_intersections(lines, y) for y in rows]
        with ThreadPoolExecutor(max_workers=self._workers) as pool:
            return list(pool.map(lambda y: sorted_intersections(lines, y), rows))

    def fill(self, lines: Sequence[Line], style: Style, *, antialias: bool) -> None:
        rows = self.scanline_rows(lines)
        if not rows:
            return
        for y, crossings in zip(rows, self.spans(lines, rows)):
            for enter, exit_ in zip(crossings[0::2], crossings[1::2]):
                if antialias:
                    self._fill_span_aa(y, enter, exit_, style)
                else:
                    self._fill_span(y, enter, exit_, style)

    def _fill_span(self, y: int, enter: float, exit_: float, style: Style) -> None:
        start = max(0, math.floor(enter))
        end = min(self.width - 1, math.floor(exit_))
        plot = self._plot
        for x in range(start, end + 1):
            plot(x, y, style.color_at(x, y))

    def _fill_span_aa(self, y: int, enter: float, exit_: float, style: Style) -> None:
        start = math.floor(enter)
        end = math.floor(exit_)
        if start == end:
            self._plot_coverage(start, y, exit_ - enter, style)
            return
        self._plot_coverage(start, y, 1.0 - fract(enter), style)
        plot = self._plot
        for x in range(max(start + 1, 0), min(end, self.width)):
            plot(x, y, style.color_at(x, y))
        self._plot_coverage(end, y, fract(exit_), style)

    def _plot_coverage(self, x: int, y: int, coverage: float, style: Style) -> None:
        if coverage <= 0.0 or x < 0 or x >= self.width:
            return
        color = style.color_at(x, y)
        if coverage < 1.0:
            color = scale_alpha(color, coverage)
        self._plot(x, y, color)

    # --- stroke -----------------------------------------------------------

    def stroke(self, lines: Sequence[Line], style: Style, *, line_width: float, antialias: bool) -> None:
        for line in lines:
            if antialias:
                self.draw_line_aa(line, style, line_width)
            else:
                self.draw_line(line, style)

    def draw_line(self, line: Line, style: Style) -> None:
        """One pixel wide Bresenham line."""
        x0 = math.floor(line.start.x)
        y0 = math.floor(line.start.y)
        x1 = math.floor(line.end.x)
        y1 = math.floor(line.end.y)
        dx = abs(x1 - x0)
        dy = abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx - dy
        plot = self._plot
        while True:
            plot(x0, y0, style.color_at(x0, y0))
            if x0 == x1 and y0 == y1:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x0 += sx
            if e2 < dx:
                err += dx
                y0 += sy

    def draw_line_aa(self, line: Line, style: Style, line_width: float) -> None:
        """Anti-aliased thick line tracking the distance to the ideal line.

        Pixels further than half the width from the line get no coverage.
        """
        x0 = math.floor(line.start.x)
        y0 = math.floor(line.start.y)
        x1 = math.floor(line.end.x)
        y1 = math.floor(line.end.y)
        dx = abs(x1 - x0)
        dy = abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx - dy
        ed = 1.0 if dx + dy == 0 else math.sqrt(dx * dx + dy * dy)
        width = (line_width + 1) / 2.0

        def plot(x: int, y: int, distance: float) -> None:
            coverage = 1.0 - max(0.0, distance / ed - width + 1.0)
            if coverage <= 0.0:
                return
            self._plot(x, y, scale_alpha(style.color_at(x, y), coverage))

        while True:
            plot(x0, y0, abs(err - dx + dy))
            e2 = err
            x2 = x0
            if 2 * e2 >= -dx:
                e2 += dy
                y2 = y0
                while e2 < ed * width and (y1 != y2 or dx > dy):
                    y2 += sy
                    plot(x0, y2, abs(e2))
                    e2 += dx
                if x0 == x1:
                    break
                e2 = err
                err -= dy
                x0 += sx
            if 2 * e2 <= dy:
                e2 = dx - e2
                while e2 < ed * width and (x1 != x2 or dx < dy):
                    x2 += sx
                    plot(x2, y0, abs(e2))
                    e2 += dy
                if y0 == y1:
                    break
                err += dx
                y0 += sy
