from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
import math
import tomllib
from typing import Any

from .gradient import DEFAULT_RADIAL_RADIUS
from .path import (
    DEFAULT_ARC_STEP,
    DEFAULT_FLATNESS_THRESHOLD,
    DEFAULT_MAX_SUBDIVISION_DEPTH,
    DEFAULT_QUADRATIC_STEPS,
)


@dataclass(frozen=True)
class RenderConfig:
    antialias: bool = True
    flatness_threshold: float = DEFAULT_FLATNESS_THRESHOLD
    quadratic_steps: int = DEFAULT_QUADRATIC_STEPS
    arc_step: float = DEFAULT_ARC_STEP
    max_subdivision_depth: int = DEFAULT_MAX_SUBDIVISION_DEPTH
    radial_gradient_radius: float = DEFAULT_RADIAL_RADIUS
    glyph_cache_entries: int = 512
    scanline_workers: int = 1

    def __post_init__(self) -> None:
        if self.flatness_threshold <= 0:
            raise ValueError("flatness_threshold must be > 0")
        if self.quadratic_steps <= 0:
            raise ValueError("quadratic_steps must be > 0")
        if not (0 < self.arc_step < 2 * math.pi):
            raise ValueError("arc_step must be in (0, 2*pi)")
        if self.max_subdivision_depth <= 0:
            raise ValueError("max_subdivision_depth must be > 0")
        if self.radial_gradient_radius <= 0:
            raise ValueError("radial_gradient_radius must be > 0")
        if self.glyph_cache_entries <= 0:
            raise ValueError("glyph_cache_entries must be > 0")
        if self.scanline_workers < 1:
            raise ValueError("scanline_workers must be >= 1")

    def with_overrides(self, **overrides: Any) -> "RenderConfig":
        return replace(self, **overrides)


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "antialias": (bool,),
    "flatness_threshold": (int, float),
    "quadratic_steps": (int,),
    "arc_step": (int, float),
    "max_subdivision_depth": (int,),
    "radial_gradient_radius": (int, float),
    "glyph_cache_entries": (int,),
    "scanline_workers": (int,),
}


def load_render_config(path: str | Path) -> RenderConfig:
    """Read the ``[render]`` table of a TOML file; absent keys keep their defaults."""
    with Path(path).open("rb") as f:
        raw = tomllib.load(f)
    return render_config_from_mapping(raw.get("render", {}))


def render_config_from_mapping(raw: Any) -> RenderConfig:
    if not isinstance(raw, dict):
        raise ValueError("`render` must be a table")
    known = {f.name for f in fields(RenderConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"unknown render config keys: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for key, value in raw.items():
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; only accept it where bool is expected
        if isinstance(value, bool) and bool not in expected:
            raise ValueError(f"`{key}` must be {_type_names(expected)}, got bool")
        if not isinstance(value, expected):
            raise ValueError(f"`{key}` must be {_type_names(expected)}, got {type(value).__name__}")
        values[key] = float(value) if float in expected else value
    return RenderConfig(**values)


def _type_names(types: tuple[type, ...]) -> str:
    return " or ".join(t.__name__ for t in types)
