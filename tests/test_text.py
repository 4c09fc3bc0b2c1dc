from __future__ import annotations

from io import BytesIO
import unittest

from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

from pixcanvas.bitmap import PixelBuffer
from pixcanvas.context import DrawingSurface
from pixcanvas.errors import FontLoadError, FontNotLoadedError, NoFontAvailableError
from pixcanvas.path import MoveTo
from pixcanvas.text import (
    ClosePath,
    FontDescriptor,
    FontRegistry,
    FontToolsFontProvider,
    GlyphBitmap,
    MemoryGlyphCache,
    TextMetrics,
    parse_font,
)
from pixcanvas.text.layout import aligned_origin, render_glyph

BLACK = 0x000000FF


def _box_glyph(*contours: tuple[int, int, int, int]):
    pen = TTGlyphPen(None)
    for x0, y0, x1, y1 in contours:
        pen.moveTo((x0, y0))
        pen.lineTo((x0, y1))
        pen.lineTo((x1, y1))
        pen.lineTo((x1, y0))
        pen.closePath()
    return pen.glyph()


def build_test_font() -> bytes:
    """Tiny TrueType font: ``A`` is a solid box, ``O`` a box with a square counter.

    ``J`` starts 100 units left of the pen and ends 100 past its advance.
    """
    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder([".notdef", "A", "O", "J", "space"])
    fb.setupCharacterMap({ord("A"): "A", ord("O"): "O", ord("J"): "J", ord(" "): "space"})
    fb.setupGlyf(
        {
            ".notdef": _box_glyph((50, 0, 450, 700)),
            "A": _box_glyph((0, 0, 600, 700)),
            "O": _box_glyph((50, 0, 550, 700), (150, 100, 450, 600)),
            "J": _box_glyph((-100, 0, 700, 700)),
            "space": TTGlyphPen(None).glyph(),
        }
    )
    fb.setupHorizontalMetrics({".notdef": (500, 50), "A": (600, 0), "O": (600, 50), "J": (600, -100), "space": (250, 0)})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": "Test Sans", "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=800, sTypoDescender=-200, usWinAscent=800, usWinDescent=200)
    fb.setupPost()
    out = BytesIO()
    fb.save(out)
    return out.getvalue()


FONT_BYTES = build_test_font()


class _FakeProvider:
    def __init__(self) -> None:
        self.outline_calls: list[tuple[str, float, float, float]] = []

    def load(self, source):
        return object()

    def units_per_em(self, face) -> int:
        return 1000

    def ascender(self, face) -> float:
        return 800.0

    def descender(self, face) -> float:
        return -200.0

    def get_outline(self, face, text, x, y, size):
        self.outline_calls.append((text, x, y, size))
        return []

    def get_advance_widths(self, face, text):
        return [500.0] * len(text)


def _text_surface(width: int = 200, height: int = 120) -> DrawingSurface:
    registry = FontRegistry()
    registry.register("Test Sans", FONT_BYTES).load()
    surface = DrawingSurface(PixelBuffer(width, height), fonts=registry)
    surface.font = "100px Test Sans"
    return surface


class FontRegistryTests(unittest.TestCase):
    def test_two_phase_lifecycle(self) -> None:
        registry = FontRegistry()
        handle = registry.register("Test Sans", FONT_BYTES)
        self.assertEqual(handle.state, "registered")
        with self.assertRaises(FontNotLoadedError):
            handle.face
        ready: list[object] = []
        future = handle.load(on_ready=ready.append)
        self.assertIs(future.result(), handle)
        self.assertEqual(ready, [handle])
        self.assertEqual(handle.state, "loaded")
        self.assertTrue(handle.loaded)
        self.assertIs(handle.load(), future)
        self.assertEqual(handle.units_per_em(), 1000)

    def test_unparseable_font_fails_to_load(self) -> None:
        registry = FontRegistry()
        handle = registry.register("Broken", b"definitely not a font file" * 4)
        ready: list[object] = []
        with self.assertLogs("pixcanvas.text.fonts", level="WARNING"):
            future = handle.load(on_ready=ready.append)
        self.assertIsInstance(future.exception(), FontLoadError)
        self.assertEqual(handle.state, "failed")
        self.assertEqual(ready, [])
        with self.assertRaises(FontNotLoadedError):
            handle.ascender()

    def test_missing_font_file_fails_to_load(self) -> None:
        handle = FontRegistry().register("Gone", "/nonexistent/gone.ttf")
        with self.assertLogs("pixcanvas.text.fonts", level="WARNING"):
            handle.load()
        self.assertEqual(handle.state, "failed")

    def test_lookup_falls_back_to_first_font(self) -> None:
        registry = FontRegistry(provider=_FakeProvider())
        first = registry.register("First", b"")
        registry.register("Second", b"")
        self.assertIs(registry.find("First"), first)
        with self.assertLogs("pixcanvas.text.fonts", level="WARNING") as logs:
            self.assertIs(registry.find("Missing"), first)
        self.assertIn("Missing", logs.output[0])

    def test_empty_registry_raises(self) -> None:
        with self.assertRaises(NoFontAvailableError):
            FontRegistry(provider=_FakeProvider()).find("Any")

    def test_registry_bookkeeping(self) -> None:
        registry = FontRegistry(provider=_FakeProvider())
        registry.register("A", b"")
        registry.register("B", b"", weight=700, style="italic")
        self.assertEqual(registry.families(), ["A", "B"])
        self.assertIn("B", registry)
        self.assertEqual(len(registry), 2)
        registry.unregister("A")
        self.assertNotIn("A", registry)
        registry.clear()
        self.assertEqual(len(registry), 0)
        with self.assertRaises(ValueError):
            registry.register("  ", b"")


class FontToolsProviderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.provider = FontToolsFontProvider()
        self.face = self.provider.load(FONT_BYTES)

    def test_metrics(self) -> None:
        self.assertEqual(self.provider.units_per_em(self.face), 1000)
        self.assertEqual(self.provider.ascender(self.face), 800.0)
        self.assertEqual(self.provider.descender(self.face), -200.0)
        self.assertEqual(self.provider.get_advance_widths(self.face, "AO "), [600.0, 600.0, 250.0])

    def test_unmapped_characters_use_notdef(self) -> None:
        self.assertEqual(self.provider.get_advance_widths(self.face, "Z"), [500.0])

    def test_outline_is_scaled_and_flipped(self) -> None:
        outline = self.provider.get_outline(self.face, "A", 0.0, 100.0, 100.0)
        self.assertIsInstance(outline[0], MoveTo)
        self.assertIsInstance(outline[-1], ClosePath)
        points = [cmd.point for cmd in outline if not isinstance(cmd, ClosePath)]
        self.assertAlmostEqual(min(p.x for p in points), 0.0)
        self.assertAlmostEqual(max(p.x for p in points), 60.0)
        self.assertAlmostEqual(min(p.y for p in points), 30.0)
        self.assertAlmostEqual(max(p.y for p in points), 100.0)

    def test_outline_advances_between_glyphs(self) -> None:
        outline = self.provider.get_outline(self.face, "AA", 10.0, 0.0, 10.0)
        xs = sorted({cmd.point.x for cmd in outline if not isinstance(cmd, ClosePath)})
        self.assertAlmostEqual(xs[0], 10.0)
        self.assertAlmostEqual(xs[-1], 22.0)

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            self.provider.load("/nonexistent/font.ttf")


class FontParsingTests(unittest.TestCase):
    def test_parse_font(self) -> None:
        self.assertEqual(parse_font("48px Source Sans"), FontDescriptor("Source Sans", 48.0))
        self.assertEqual(parse_font("12pt Serif"), FontDescriptor("Serif", 12.0))
        self.assertEqual(parse_font(" 12.5 Mono "), FontDescriptor("Mono", 12.5))
        for bad in ("Sans", "px Sans", "12px", ""):
            with self.subTest(value=bad):
                with self.assertRaises(ValueError):
                    parse_font(bad)


class AlignmentTests(unittest.TestCase):
    def test_aligned_origin(self) -> None:
        metrics = TextMetrics(width=10.0, em_height_ascent=8.0, em_height_descent=-2.0)
        self.assertEqual(aligned_origin(metrics, 20, 30, "start", "alphabetic"), (20, 30))
        self.assertEqual(aligned_origin(metrics, 20, 30, "left", "alphabetic"), (20, 30))
        self.assertEqual(aligned_origin(metrics, 20, 30, "center", "alphabetic"), (15.0, 30))
        self.assertEqual(aligned_origin(metrics, 20, 30, "end", "top"), (10.0, 38.0))
        self.assertEqual(aligned_origin(metrics, 20, 30, "right", "middle"), (10.0, 33.0))
        self.assertEqual(aligned_origin(metrics, 20, 30, "start", "bottom"), (20, 28.0))

    def test_surface_passes_aligned_origin_to_provider(self) -> None:
        provider = _FakeProvider()
        registry = FontRegistry(provider=provider)
        registry.register("Fake", b"").load()
        surface = DrawingSurface(PixelBuffer(50, 50), fonts=registry)
        surface.font = "10px Fake"
        surface.text_align = "center"
        surface.text_baseline = "middle"
        surface.fill_text("ab", 20, 30)
        text, x, y, size = provider.outline_calls[-1]
        self.assertEqual((text, size), ("ab", 10.0))
        self.assertAlmostEqual(x, 15.0)
        self.assertAlmostEqual(y, 33.0)

    def test_measure_text_scales_by_units_per_em(self) -> None:
        registry = FontRegistry(provider=_FakeProvider())
        registry.register("Fake", b"").load()
        surface = DrawingSurface(PixelBuffer(10, 10), fonts=registry)
        surface.font = "20px Fake"
        metrics = surface.measure_text("abc")
        self.assertAlmostEqual(metrics.width, 30.0)
        self.assertAlmostEqual(metrics.em_height_ascent, 16.0)
        self.assertAlmostEqual(metrics.em_height_descent, -4.0)

    def test_unloaded_font_raises(self) -> None:
        registry = FontRegistry(provider=_FakeProvider())
        registry.register("Fake", b"")
        surface = DrawingSurface(PixelBuffer(10, 10), fonts=registry)
        with self.assertRaises(FontNotLoadedError):
            surface.fill_text("a", 0, 5)


class OutlineTextTests(unittest.TestCase):
    def test_measure_text_with_real_font(self) -> None:
        metrics = _text_surface().measure_text("AO")
        self.assertAlmostEqual(metrics.width, 120.0)
        self.assertAlmostEqual(metrics.em_height_ascent, 80.0)
        self.assertAlmostEqual(metrics.em_height_descent, -20.0)

    def test_fill_text_paints_glyph_box(self) -> None:
        surface = _text_surface()
        surface.fill_text("A", 10, 90)
        self.assertEqual(surface.bitmap.get_pixel(40, 50), BLACK)
        self.assertEqual(surface.bitmap.get_pixel(100, 50), 0)
        self.assertEqual(surface.bitmap.get_pixel(40, 10), 0)
        self.assertEqual(surface.path.commands, [])

    def test_counters_stay_open(self) -> None:
        surface = _text_surface()
        surface.fill_style = "red"
        surface.fill_text("O", 10, 90)
        self.assertEqual(surface.bitmap.get_pixel(20, 55), 0xFF0000FF)
        self.assertEqual(surface.bitmap.get_pixel(40, 55), 0)

    def test_stroke_text_outlines_glyph(self) -> None:
        surface = _text_surface()
        surface.stroke_text("A", 10, 90)
        self.assertNotEqual(surface.bitmap.get_pixel(10, 50) & 0xFF, 0)
        self.assertEqual(surface.bitmap.get_pixel(40, 50), 0)


class GlyphCacheTextTests(unittest.TestCase):
    def test_glyph_mode_renders_and_caches(self) -> None:
        surface = _text_surface()
        surface.use_glyph_cache = True
        surface.fill_text("AA", 10, 90)
        cache = surface.text_layout.glyph_cache
        self.assertEqual(len(cache), 1)
        self.assertEqual((cache.hits, cache.misses), (1, 1))
        self.assertEqual(surface.bitmap.get_pixel(40, 50), BLACK)
        self.assertEqual(surface.bitmap.get_pixel(100, 50), BLACK)
        self.assertEqual(surface.bitmap.get_pixel(150, 50), 0)

    def test_render_glyph_places_baseline_at_ascent(self) -> None:
        registry = FontRegistry()
        handle = registry.register("Test Sans", FONT_BYTES)
        handle.load()
        glyph = render_glyph(handle, "A", 100.0)
        self.assertAlmostEqual(glyph.advance, 60.0)
        self.assertAlmostEqual(glyph.ascent, 80.0)
        self.assertEqual(glyph.bitmap.get_pixel(30, 40) & 0xFF, 255)
        self.assertEqual(glyph.bitmap.get_pixel(30, 5) & 0xFF, 0)
        self.assertEqual(glyph.bitmap.get_pixel(30, 85) & 0xFF, 0)

    def test_render_glyph_keeps_ink_outside_the_advance(self) -> None:
        registry = FontRegistry()
        handle = registry.register("Test Sans", FONT_BYTES)
        handle.load()
        glyph = render_glyph(handle, "J", 100.0)
        self.assertAlmostEqual(glyph.advance, 60.0)
        self.assertEqual(glyph.left, -10)
        self.assertEqual(glyph.bitmap.get_pixel(1, 40) & 0xFF, 255)
        self.assertEqual(glyph.bitmap.get_pixel(79, 40) & 0xFF, 255)

    def test_glyph_mode_matches_outline_mode_for_overhanging_ink(self) -> None:
        outlined = _text_surface()
        outlined.fill_text("J", 20, 90)
        cached = _text_surface()
        cached.use_glyph_cache = True
        cached.fill_text("J", 20, 90)
        row = [cached.bitmap.get_pixel(x, 50) for x in range(120)]
        self.assertEqual(row, [outlined.bitmap.get_pixel(x, 50) for x in range(120)])
        self.assertEqual(cached.bitmap.get_pixel(11, 50), BLACK)
        self.assertEqual(cached.bitmap.get_pixel(88, 50), BLACK)
        self.assertEqual(cached.bitmap.get_pixel(9, 50), 0)
        self.assertEqual(cached.bitmap.get_pixel(90, 50), 0)


class MemoryGlyphCacheTests(unittest.TestCase):
    def _glyph(self) -> GlyphBitmap:
        return GlyphBitmap(bitmap=PixelBuffer(1, 1), advance=1.0, ascent=1.0)

    def test_lookup_by_family_size_and_char(self) -> None:
        cache = MemoryGlyphCache()
        glyph = self._glyph()
        cache.insert("Sans", 12, "a", glyph)
        self.assertTrue(cache.contains("Sans", 12.0, "a"))
        self.assertFalse(cache.contains("Sans", 13.0, "a"))
        self.assertIs(cache.get("Sans", 12, "a"), glyph)

    def test_least_recently_used_entry_is_evicted(self) -> None:
        cache = MemoryGlyphCache(max_entries=2)
        cache.insert("Sans", 12, "a", self._glyph())
        cache.insert("Sans", 12, "b", self._glyph())
        cache.get("Sans", 12, "a")
        with self.assertLogs("pixcanvas.text.glyph_cache", level="DEBUG"):
            cache.insert("Sans", 12, "c", self._glyph())
        self.assertEqual(len(cache), 2)
        self.assertTrue(cache.contains("Sans", 12, "a"))
        self.assertFalse(cache.contains("Sans", 12, "b"))
        cache.clear()
        self.assertEqual((len(cache), cache.hits, cache.misses), (0, 0, 0))

    def test_max_entries_validated(self) -> None:
        with self.assertRaises(ValueError):
            MemoryGlyphCache(max_entries=0)


if __name__ == "__main__":
    unittest.main()
