from __future__ import annotations

import math
from pathlib import Path
import tempfile
import unittest

from pixcanvas.bitmap import PixelBuffer
from pixcanvas.config import RenderConfig, load_render_config, render_config_from_mapping
from pixcanvas.context import DrawingSurface


class RenderConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = RenderConfig()
        self.assertTrue(cfg.antialias)
        self.assertEqual(cfg.flatness_threshold, 10.0)
        self.assertEqual(cfg.quadratic_steps, 10)
        self.assertAlmostEqual(cfg.arc_step, math.pi / 16)
        self.assertEqual(cfg.radial_gradient_radius, 10.0)
        self.assertEqual(cfg.scanline_workers, 1)

    def test_invalid_values_rejected(self) -> None:
        for overrides in (
            {"flatness_threshold": 0},
            {"quadratic_steps": 0},
            {"arc_step": 7.0},
            {"max_subdivision_depth": 0},
            {"radial_gradient_radius": -1},
            {"glyph_cache_entries": 0},
            {"scanline_workers": 0},
        ):
            with self.subTest(overrides=overrides):
                with self.assertRaises(ValueError):
                    RenderConfig(**overrides)

    def test_with_overrides_returns_new_config(self) -> None:
        base = RenderConfig()
        changed = base.with_overrides(antialias=False, scanline_workers=3)
        self.assertTrue(base.antialias)
        self.assertFalse(changed.antialias)
        self.assertEqual(changed.scanline_workers, 3)


class LoadRenderConfigTests(unittest.TestCase):
    def _write(self, td: str, text: str) -> Path:
        path = Path(td) / "render.toml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_loads_render_table(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(
                td,
                "[render]\nantialias = false\nflatness_threshold = 4\nscanline_workers = 2\n",
            )
            cfg = load_render_config(path)
        self.assertFalse(cfg.antialias)
        self.assertEqual(cfg.flatness_threshold, 4.0)
        self.assertIsInstance(cfg.flatness_threshold, float)
        self.assertEqual(cfg.scanline_workers, 2)
        self.assertEqual(cfg.quadratic_steps, 10)

    def test_missing_table_keeps_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = load_render_config(self._write(td, "[other]\nvalue = 1\n"))
        self.assertEqual(cfg, RenderConfig())

    def test_unknown_key_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self._write(td, "[render]\nsupersample = 4\n")
            with self.assertRaisesRegex(ValueError, "supersample"):
                load_render_config(path)

    def test_wrong_types_rejected(self) -> None:
        with self.assertRaises(ValueError):
            render_config_from_mapping({"quadratic_steps": "ten"})
        with self.assertRaises(ValueError):
            render_config_from_mapping({"scanline_workers": True})
        with self.assertRaises(ValueError):
            render_config_from_mapping({"antialias": 1})
        with self.assertRaises(ValueError):
            render_config_from_mapping(["antialias"])

    def test_surface_picks_up_config(self) -> None:
        cfg = RenderConfig(antialias=False, radial_gradient_radius=25.0)
        surface = DrawingSurface(PixelBuffer(4, 4), config=cfg)
        self.assertFalse(surface.image_smoothing_enabled)
        self.assertEqual(surface.create_radial_gradient(0, 0).radius, 25.0)
        self.assertEqual(surface.create_radial_gradient(0, 0, 3).radius, 3)


if __name__ == "__main__":
    unittest.main()
