from __future__ import annotations

import math

from .bitmap import PixelBuffer
from .clip import ClipBoundary, point_inside_clip
from .color import parse_color
from .compositor import composite
from .config import RenderConfig
from .errors import UnsupportedOperationError
from .geometry import Line, Point, clamp
from .gradient import LinearGradient, PaintStyle, RadialGradient, SolidColor
from .path import Path
from .rasterizer import Rasterizer
from .text.fonts import FontRegistry
from .text.glyph_cache import GlyphCache, MemoryGlyphCache
from .text.layout import (
    TEXT_ALIGNS,
    TEXT_BASELINES,
    FontDescriptor,
    TextAlign,
    TextBaseline,
    TextLayout,
    TextMetrics,
    parse_font,
)
from .transform import AffineTransform


BLACK = 0x000000FF
StyleValue = str | int | SolidColor | LinearGradient | RadialGradient


class DrawingSurface:
    """2D drawing context bound to one pixel buffer.

    Path points are transformed as they are added. ``save``/``restore`` stack
    only the transform; styles, line width, alpha, font and clip are left
    untouched by ``restore``.
    """

    def __init__(
        self,
        bitmap: PixelBuffer,
        *,
        config: RenderConfig | None = None,
        fonts: FontRegistry | None = None,
        glyph_cache: GlyphCache | None = None,
    ) -> None:
        self.bitmap = bitmap
        self.config = config if config is not None else RenderConfig()
        self.transform = AffineTransform()
        self.path = Path(self.transform, arc_step=self.config.arc_step)
        self.clip_boundary: ClipBoundary | None = None
        self.image_smoothing_enabled = self.config.antialias
        self.use_glyph_cache = False
        self.font_descriptor = FontDescriptor()
        self.fonts = fonts if fonts is not None else FontRegistry()
        if glyph_cache is None:
            glyph_cache = MemoryGlyphCache(self.config.glyph_cache_entries)
        self.text_layout = TextLayout(self.fonts, glyph_cache)
        self._fill_value: StyleValue = "black"
        self._fill_paint: PaintStyle = SolidColor(BLACK)
        self._stroke_value: StyleValue = "black"
        self._stroke_paint: PaintStyle = SolidColor(BLACK)
        self._line_width = 1.0
        self._global_alpha = 1.0
        self._text_align: TextAlign = "start"
        self._text_baseline: TextBaseline = "alphabetic"
        self._rasterizer = Rasterizer(
            bitmap.width, bitmap.height, self.fill_pixel_with_color, workers=self.config.scanline_workers
        )

    # --- state ------------------------------------------------------------

    @property
    def fill_style(self) -> StyleValue:
        return self._fill_value

    @fill_style.setter
    def fill_style(self, value: StyleValue) -> None:
        self._fill_paint = _resolve_style(value)
        self._fill_value = value

    @property
    def fill_paint(self) -> PaintStyle:
        return self._fill_paint

    @property
    def stroke_style(self) -> StyleValue:
        return self._stroke_value

    @stroke_style.setter
    def stroke_style(self, value: StyleValue) -> None:
        self._stroke_paint = _resolve_style(value)
        self._stroke_value = value

    @property
    def stroke_paint(self) -> PaintStyle:
        return self._stroke_paint

    @property
    def line_width(self) -> float:
        return self._line_width

    @line_width.setter
    def line_width(self, value: float) -> None:
        # zero, negative and non-finite widths are ignored
        if not math.isfinite(value) or value <= 0:
            return
        self._line_width = float(value)

    @property
    def global_alpha(self) -> float:
        return self._global_alpha

    @global_alpha.setter
    def global_alpha(self, value: float) -> None:
        if math.isnan(value):
            return
        self._global_alpha = clamp(float(value), 0.0, 1.0)

    @property
    def font(self) -> str:
        return f"{self.font_descriptor.size:g}px {self.font_descriptor.family}"

    @font.setter
    def font(self, value: str) -> None:
        self.font_descriptor = parse_font(value)

    @property
    def text_align(self) -> TextAlign:
        return self._text_align

    @text_align.setter
    def text_align(self, value: TextAlign) -> None:
        if value not in TEXT_ALIGNS:
            raise ValueError(f"text_align must be one of {TEXT_ALIGNS}, got {value!r}")
        self._text_align = value

    @property
    def text_baseline(self) -> TextBaseline:
        return self._text_baseline

    @text_baseline.setter
    def text_baseline(self, value: TextBaseline) -> None:
        if value not in TEXT_BASELINES:
            raise ValueError(f"text_baseline must be one of {TEXT_BASELINES}, got {value!r}")
        self._text_baseline = value

    def create_linear_gradient(self, x0: float, y0: float, x1: float, y1: float) -> LinearGradient:
        return LinearGradient(start=Point(x0, y0), end=Point(x1, y1))

    def create_radial_gradient(self, x: float, y: float, radius: float | None = None) -> RadialGradient:
        if radius is None:
            radius = self.config.radial_gradient_radius
        return RadialGradient(center=Point(x, y), radius=radius)

    # --- transform --------------------------------------------------------

    def save(self) -> None:
        self.transform.save()

    def restore(self) -> None:
        self.transform.restore()

    def translate(self, x: float, y: float) -> None:
        self.transform.translate(x, y)

    def rotate(self, angle: float) -> None:
        self.transform.rotate(angle)

    def scale(self, sx: float, sy: float) -> None:
        self.transform.scale(sx, sy)

    # --- pixels -----------------------------------------------------------

    def pixel_inside_clip(self, x: float, y: float) -> bool:
        return point_inside_clip(self.clip_boundary, x, y)

    def fill_pixel_with_color(self, x: int, y: int, color: int) -> None:
        if not self.pixel_inside_clip(x, y):
            return
        old = self.bitmap.get_pixel(x, y)
        self.bitmap.set_pixel(x, y, composite(old, color, self._global_alpha))

    def fill_pixel(self, x: int, y: int) -> None:
        self.fill_pixel_with_color(x, y, self._fill_paint.color_at(x, y))

    def stroke_pixel(self, x: int, y: int) -> None:
        self.fill_pixel_with_color(x, y, self._stroke_paint.color_at(x, y))

    # --- rectangles -------------------------------------------------------

    def fill_rect(self, x: float, y: float, w: float, h: float) -> None:
        box = self._device_box(x, y, w, h, antialias=self.image_smoothing_enabled)
        if box is None:
            self._rasterizer.fill(self._rect_lines(x, y, w, h), self._fill_paint, antialias=self.image_smoothing_enabled)
            return
        x0, y0, x1, y1 = box
        for j in range(y0, y1):
            for i in range(x0, x1):
                self.fill_pixel(i, j)

    def clear_rect(self, x: float, y: float, w: float, h: float) -> None:
        """Reset pixels to transparent black, ignoring clip and global alpha."""
        box = self._device_box(x, y, w, h, antialias=False)
        if box is None:
            eraser = Rasterizer(self.bitmap.width, self.bitmap.height, lambda i, j, _c: self.bitmap.set_pixel(i, j, 0))
            eraser.fill(self._rect_lines(x, y, w, h), SolidColor(0), antialias=False)
            return
        x0, y0, x1, y1 = box
        self.bitmap.fill_rect(x0, y0, x1 - x0, y1 - y0, 0x00000000)

    def stroke_rect(self, x: float, y: float, w: float, h: float) -> None:
        self._rasterizer.stroke(
            self._rect_lines(x, y, w, h),
            self._stroke_paint,
            line_width=self._line_width,
            antialias=self.image_smoothing_enabled,
        )

    def _device_box(
        self, x: float, y: float, w: float, h: float, *, antialias: bool
    ) -> tuple[int, int, int, int] | None:
        """Half-open pixel box ``(x0, y0, x1, y1)`` for an axis-aligned rectangle.

        Selects the same pixels as the scanline fill of the rectangle's
        outline: rows ``floor(top) + 1`` to ``floor(bottom)`` and columns
        ``floor(left)`` to ``floor(right)``. Anti-aliased spans drop the right
        column when it gets zero coverage; fractional edges under anti-aliasing
        return None so the caller rasterizes the outline instead.
        """
        if not self.transform.is_axis_aligned():
            return None
        p0 = self.transform.transform_point(Point(x, y))
        p1 = self.transform.transform_point(Point(x + w, y + h))
        left, right = sorted((p0.x, p1.x))
        top, bottom = sorted((p0.y, p1.y))
        if antialias and (left != math.floor(left) or right != math.floor(right)):
            return None
        x0 = max(0, math.floor(left))
        y0 = max(0, math.floor(top) + 1)
        x1 = min(self.bitmap.width, math.floor(right) + (0 if antialias else 1))
        y1 = min(self.bitmap.height, math.floor(bottom) + 1)
        return (x0, y0, max(x0, x1), max(y0, y1))

    def _rect_lines(self, x: float, y: float, w: float, h: float) -> list[Line]:
        tp = self.transform.transform_point
        corners = [tp(Point(x, y)), tp(Point(x + w, y)), tp(Point(x + w, y + h)), tp(Point(x, y + h))]
        return [Line(corners[i], corners[(i + 1) % 4]) for i in range(4)]

    # --- paths ------------------------------------------------------------

    def begin_path(self) -> None:
        self.path.begin()

    def move_to(self, x: float, y: float) -> None:
        self.path.move_to(x, y)

    def line_to(self, x: float, y: float) -> None:
        self.path.line_to(x, y)

    def quadratic_curve_to(self, cpx: float, cpy: float, x: float, y: float) -> None:
        self.path.quadratic_curve_to(cpx, cpy, x, y)

    def bezier_curve_to(self, cp1x: float, cp1y: float, cp2x: float, cp2y: float, x: float, y: float) -> None:
        self.path.bezier_curve_to(cp1x, cp1y, cp2x, cp2y, x, y)

    def arc(
        self, x: float, y: float, radius: float, start_angle: float, end_angle: float, anticlockwise: bool = False
    ) -> None:
        self.path.arc(x, y, radius, start_angle, end_angle, anticlockwise)

    def arc_to(self, *args: float) -> None:
        self.path.arc_to(*args)

    def rect(self, *args: float) -> None:
        self.path.rect(*args)

    def ellipse(self, *args: float) -> None:
        self.path.ellipse(*args)

    def close_path(self) -> None:
        self.path.close_path()

    def path_lines(self) -> list[Line]:
        return self.path.to_lines(
            flatness_threshold=self.config.flatness_threshold,
            quadratic_steps=self.config.quadratic_steps,
            max_depth=self.config.max_subdivision_depth,
        )

    def clip(self) -> None:
        """Replace the clip region with the current path (even-odd)."""
        self.clip_boundary = ClipBoundary(tuple(self.path_lines()))

    def fill(self) -> None:
        self._rasterizer.fill(self.path_lines(), self._fill_paint, antialias=self.image_smoothing_enabled)

    def stroke(self) -> None:
        self._rasterizer.stroke(
            self.path_lines(),
            self._stroke_paint,
            line_width=self._line_width,
            antialias=self.image_smoothing_enabled,
        )

    def draw_line(self, line: Line) -> None:
        if self.image_smoothing_enabled:
            self._rasterizer.draw_line_aa(line, self._stroke_paint, self._line_width)
        else:
            self._rasterizer.draw_line(line, self._stroke_paint)

    # --- images -----------------------------------------------------------

    def get_image_data(self) -> PixelBuffer:
        return self.bitmap

    def put_image_data(self, *args: object) -> None:
        raise UnsupportedOperationError("put_image_data is not supported; use draw_image")

    def draw_image(self, image: PixelBuffer, *args: float) -> None:
        """Copy pixels from ``image`` with nearest-neighbour scaling.

        Accepts ``(dx, dy)``, ``(dx, dy, dw, dh)`` or
        ``(sx, sy, sw, sh, dx, dy, dw, dh)``. Destination coordinates are device
        pixels; the transform, clip and compositing are not applied.
        """
        if len(args) == 2:
            sx, sy, sw, sh = 0, 0, image.width, image.height
            dx, dy = args
            dw, dh = image.width, image.height
        elif len(args) == 4:
            sx, sy, sw, sh = 0, 0, image.width, image.height
            dx, dy, dw, dh = args
        elif len(args) == 8:
            sx, sy, sw, sh, dx, dy, dw, dh = args
        else:
            raise TypeError(f"draw_image takes 2, 4 or 8 coordinates, got {len(args)}")
        if dw <= 0 or dh <= 0:
            return
        for i in range(math.ceil(dw)):
            src_x = math.floor(i / dw * sw) + sx
            for j in range(math.ceil(dh)):
                src_y = sy + math.floor(j / dh * sh)
                self.bitmap.set_pixel(dx + i, dy + j, image.get_pixel(src_x, src_y))

    # --- text -------------------------------------------------------------

    def measure_text(self, text: str) -> TextMetrics:
        return self.text_layout.measure_text(self.font_descriptor, text)

    def fill_text(self, text: str, x: float, y: float) -> None:
        self.text_layout.paint_text(self, text, x, y, fill=True, use_glyph_cache=self.use_glyph_cache)

    def stroke_text(self, text: str, x: float, y: float) -> None:
        self.text_layout.paint_text(self, text, x, y, fill=False, use_glyph_cache=self.use_glyph_cache)


def _resolve_style(value: StyleValue) -> PaintStyle:
    if isinstance(value, (SolidColor, LinearGradient, RadialGradient)):
        return value
    if isinstance(value, str):
        return SolidColor(parse_color(value))
    if isinstance(value, int) and not isinstance(value, bool):
        return SolidColor(value & 0xFFFFFFFF)
    raise TypeError(f"style must be a colour string, uint32 or gradient, got {type(value).__name__}")
