from .fonts import ClosePath, FontHandle, FontProvider, FontRegistry, FontToolsFontProvider, OutlineCommand
from .glyph_cache import GlyphBitmap, GlyphCache, MemoryGlyphCache
from .layout import FontDescriptor, TextLayout, TextMetrics, parse_font

__all__ = [
    "ClosePath",
    "FontDescriptor",
    "FontHandle",
    "FontProvider",
    "FontRegistry",
    "FontToolsFontProvider",
    "GlyphBitmap",
    "GlyphCache",
    "MemoryGlyphCache",
    "OutlineCommand",
    "TextLayout",
    "TextMetrics",
    "parse_font",
]
