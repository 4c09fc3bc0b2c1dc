from pixcanvas.bitmap import PixelBuffer
from pixcanvas.clip import ClipBoundary
from pixcanvas.color import bytes_to_color, color_to_bytes, parse_color
from pixcanvas.compositor import composite
from pixcanvas.config import RenderConfig, load_render_config
from pixcanvas.context import DrawingSurface
from pixcanvas.errors import (
    ColorParseError,
    FontLoadError,
    FontNotLoadedError,
    InvalidGradientError,
    NoFontAvailableError,
    UnsupportedOperationError,
)
from pixcanvas.geometry import Line, Point
from pixcanvas.gradient import LinearGradient, RadialGradient, SolidColor
from pixcanvas.named_colors import NAMED_COLORS
from pixcanvas.text import FontRegistry, MemoryGlyphCache, TextMetrics
from pixcanvas.transform import AffineTransform

__all__ = [
    "AffineTransform",
    "ClipBoundary",
    "ColorParseError",
    "DrawingSurface",
    "FontLoadError",
    "FontNotLoadedError",
    "FontRegistry",
    "InvalidGradientError",
    "Line",
    "LinearGradient",
    "MemoryGlyphCache",
    "NAMED_COLORS",
    "NoFontAvailableError",
    "PixelBuffer",
    "Point",
    "RadialGradient",
    "RenderConfig",
    "SolidColor",
    "TextMetrics",
    "UnsupportedOperationError",
    "bytes_to_color",
    "color_to_bytes",
    "composite",
    "load_render_config",
    "parse_color",
]
