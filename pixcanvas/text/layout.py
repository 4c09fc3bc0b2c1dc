from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import TYPE_CHECKING, Literal

from ..bitmap import PixelBuffer
from ..color import scale_alpha
from ..compositor import composite
from ..geometry import Line, Point, calc_bounds
from ..gradient import SolidColor
from ..path import BezierCurveTo, LineTo, MoveTo, QuadraticCurveTo, flatten_path
from ..rasterizer import Rasterizer
from .fonts import ClosePath, FontHandle, FontRegistry, OutlineCommand
from .glyph_cache import GlyphBitmap, GlyphCache

if TYPE_CHECKING:
    from ..context import DrawingSurface


TextAlign = Literal["start", "left", "end", "right", "center"]
TextBaseline = Literal["alphabetic", "top", "middle", "bottom"]

TEXT_ALIGNS: tuple[str, ...] = ("start", "left", "end", "right", "center")
TEXT_BASELINES: tuple[str, ...] = ("alphabetic", "top", "middle", "bottom")

_FONT_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)(?:px|pt)?\s+(.+?)\s*$")
_GLYPH_INK = 0xFFFFFFFF


@dataclass(frozen=True)
class FontDescriptor:
    family: str = "invalid"
    size: float = 12.0


def parse_font(value: str) -> FontDescriptor:
    """Parse ``"<size>[px|pt] <family>"``, e.g. ``"48px Source Sans"``."""
    match = _FONT_RE.match(value)
    if match is None:
        raise ValueError(f"font must look like '<size> <family>', got {value!r}")
    return FontDescriptor(family=match.group(2), size=float(match.group(1)))


@dataclass(frozen=True)
class TextMetrics:
    width: float
    em_height_ascent: float
    em_height_descent: float


class TextLayout:
    """Measures strings and paints them onto a surface through a font registry."""

    def __init__(self, registry: FontRegistry, glyph_cache: GlyphCache | None = None) -> None:
        self.registry = registry
        self.glyph_cache = glyph_cache

    def measure_text(self, font: FontDescriptor, text: str) -> TextMetrics:
        handle = self.registry.find(font.family)
        return self._measure(handle, font.size, text)

    def _measure(self, handle: FontHandle, size: float, text: str) -> TextMetrics:
        per_unit = size / handle.units_per_em()
        return TextMetrics(
            width=sum(handle.get_advance_widths(text)) * per_unit,
            em_height_ascent=handle.ascender() * per_unit,
            em_height_descent=handle.descender() * per_unit,
        )

    def paint_text(
        self,
        surface: "DrawingSurface",
        text: str,
        x: float,
        y: float,
        *,
        fill: bool,
        use_glyph_cache: bool = False,
    ) -> None:
        font = surface.font_descriptor
        handle = self.registry.find(font.family)
        metrics = self._measure(handle, font.size, text)
        x, y = aligned_origin(metrics, x, y, surface.text_align, surface.text_baseline)
        if use_glyph_cache:
            self._paint_glyphs(surface, handle, font.size, text, x, y)
        else:
            outline = handle.get_outline(text, x, y, font.size)
            replay_outline(surface, outline)
            if fill:
                surface.fill()
            else:
                surface.stroke()
            surface.begin_path()

    def _paint_glyphs(
        self, surface: "DrawingSurface", handle: FontHandle, size: float, text: str, x: float, y: float
    ) -> None:
        if self.glyph_cache is None:
            raise RuntimeError("glyph bitmap mode needs a glyph cache")
        cache = self.glyph_cache
        offset = 0.0
        for ch in text:
            if not cache.contains(handle.family, size, ch):
                cache.insert(handle.family, size, ch, render_glyph(handle, ch, size))
            glyph = cache.get(handle.family, size, ch)
            origin = surface.transform.transform_point(Point(x + offset, y - glyph.ascent))
            blit_glyph(surface, glyph, math.floor(origin.x) + glyph.left, math.floor(origin.y))
            offset += glyph.advance


def aligned_origin(
    metrics: TextMetrics, x: float, y: float, align: str, baseline: str
) -> tuple[float, float]:
    if align in ("end", "right"):
        x -= metrics.width
    elif align == "center":
        x -= metrics.width / 2
    if baseline == "top":
        y += metrics.em_height_ascent
    elif baseline == "middle":
        y += metrics.em_height_ascent / 2 + metrics.em_height_descent / 2
    elif baseline == "bottom":
        y += metrics.em_height_descent
    return x, y


def replay_outline(surface: "DrawingSurface", outline: list[OutlineCommand]) -> None:
    surface.begin_path()
    for cmd in outline:
        if isinstance(cmd, MoveTo):
            surface.move_to(cmd.point.x, cmd.point.y)
        elif isinstance(cmd, LineTo):
            surface.line_to(cmd.point.x, cmd.point.y)
        elif isinstance(cmd, QuadraticCurveTo):
            surface.quadratic_curve_to(cmd.control.x, cmd.control.y, cmd.end.x, cmd.end.y)
        elif isinstance(cmd, BezierCurveTo):
            surface.bezier_curve_to(
                cmd.control1.x, cmd.control1.y, cmd.control2.x, cmd.control2.y, cmd.end.x, cmd.end.y
            )
        elif isinstance(cmd, ClosePath):
            surface.close_path()


def render_glyph(handle: FontHandle, ch: str, size: float) -> GlyphBitmap:
    """Rasterise one character into a coverage bitmap with the baseline at ``ascent``."""
    per_unit = size / handle.units_per_em()
    ascent = handle.ascender() * per_unit
    descent = -handle.descender() * per_unit
    advance = sum(handle.get_advance_widths(ch)) * per_unit
    lines = flatten_path(_close_contours(handle.get_outline(ch, 0.0, ascent, size)))
    left = 0
    right = math.ceil(advance)
    bounds = calc_bounds(lines)
    if bounds is not None:
        left = min(left, math.floor(bounds.x))
        right = max(right, math.ceil(bounds.x2))
    width = max(1, right - left + 1)
    height = max(1, math.ceil(ascent + descent) + 1)
    bitmap = PixelBuffer(width, height)

    def plot(px: int, py: int, color: int) -> None:
        bitmap.set_pixel(px, py, composite(bitmap.get_pixel(px, py), color))

    if lines:
        shift = Point(-left, 0.0)
        lines = [Line(line.start + shift, line.end + shift) for line in lines]
        Rasterizer(width, height, plot).fill(lines, SolidColor(_GLYPH_INK), antialias=True)
    return GlyphBitmap(bitmap=bitmap, advance=advance, ascent=ascent, left=left)


def _close_contours(outline: list[OutlineCommand]) -> list[MoveTo | LineTo | QuadraticCurveTo | BezierCurveTo]:
    result: list[MoveTo | LineTo | QuadraticCurveTo | BezierCurveTo] = []
    start: Point | None = None
    for cmd in outline:
        if isinstance(cmd, ClosePath):
            if start is not None:
                result.append(LineTo(start))
            continue
        if isinstance(cmd, MoveTo):
            start = cmd.point
        result.append(cmd)
    return result


def blit_glyph(surface: "DrawingSurface", glyph: GlyphBitmap, dx: int, dy: int) -> None:
    """Paint glyph coverage at device position (dx, dy) with the fill style."""
    bitmap = glyph.bitmap
    style = surface.fill_paint
    for j in range(bitmap.height):
        for i in range(bitmap.width):
            coverage = bitmap.get_pixel(i, j) & 0xFF
            if coverage == 0:
                continue
            x = dx + i
            y = dy + j
            surface.fill_pixel_with_color(x, y, scale_alpha(style.color_at(x, y), coverage / 255.0))
