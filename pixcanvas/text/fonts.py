from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from io import BytesIO
import logging
from pathlib import Path
from typing import Any, Callable, Literal, Protocol, TypeAlias

from fontTools.pens.basePen import BasePen
from fontTools.ttLib import TTFont, TTLibError

from ..errors import FontLoadError, FontNotLoadedError, NoFontAvailableError
from ..geometry import Point
from ..path import BezierCurveTo, LineTo, MoveTo, QuadraticCurveTo


LOGGER = logging.getLogger(__name__)

FontSource: TypeAlias = str | Path | bytes
FontState = Literal["registered", "loaded", "failed"]


@dataclass(frozen=True)
class ClosePath:
    pass


OutlineCommand: TypeAlias = MoveTo | LineTo | QuadraticCurveTo | BezierCurveTo | ClosePath


class FontProvider(Protocol):
    """Parses font binaries and answers outline and metric queries for a face."""

    def load(self, source: FontSource) -> Any:
        ...

    def units_per_em(self, face: Any) -> int:
        ...

    def ascender(self, face: Any) -> float:
        ...

    def descender(self, face: Any) -> float:
        ...

    def get_outline(self, face: Any, text: str, x: float, y: float, size: float) -> list[OutlineCommand]:
        ...

    def get_advance_widths(self, face: Any, text: str) -> list[float]:
        ...


@dataclass(eq=False)
class FontHandle:
    """A registered font; usable for text only after ``load`` completes."""

    family: str
    source: FontSource
    provider: FontProvider
    weight: int = 400
    style: str = "normal"
    variant: str = "normal"
    _face: Any = field(default=None, init=False, repr=False)
    _ready: Future = field(default_factory=Future, init=False, repr=False)

    @property
    def state(self) -> FontState:
        if not self._ready.done():
            return "registered"
        return "failed" if self._ready.exception() is not None else "loaded"

    @property
    def loaded(self) -> bool:
        return self.state == "loaded"

    @property
    def face(self) -> Any:
        if not self.loaded:
            raise FontNotLoadedError(f"font `{self.family}` has not been loaded")
        return self._face

    def load(self, on_ready: Callable[["FontHandle"], None] | None = None) -> "Future[FontHandle]":
        """Load the face once; later calls return the same completed future."""
        if not self._ready.done():
            try:
                self._face = self.provider.load(self.source)
            except (OSError, ValueError, KeyError, TTLibError) as exc:
                LOGGER.warning("could not load font `%s`: %s", self.family, exc)
                self._ready.set_exception(FontLoadError(f"could not load font `{self.family}`: {exc}"))
            else:
                LOGGER.debug("loaded font `%s`", self.family)
                self._ready.set_result(self)
        if on_ready is not None:
            self._ready.add_done_callback(lambda fut: _notify_ready(fut, on_ready))
        return self._ready

    def units_per_em(self) -> int:
        return self.provider.units_per_em(self.face)

    def ascender(self) -> float:
        return self.provider.ascender(self.face)

    def descender(self) -> float:
        return self.provider.descender(self.face)

    def get_outline(self, text: str, x: float, y: float, size: float) -> list[OutlineCommand]:
        return self.provider.get_outline(self.face, text, x, y, size)

    def get_advance_widths(self, text: str) -> list[float]:
        return self.provider.get_advance_widths(self.face, text)


def _notify_ready(fut: "Future[FontHandle]", on_ready: Callable[[FontHandle], None]) -> None:
    if fut.exception() is None:
        on_ready(fut.result())


class FontRegistry:
    """Family name to font handle map owned by whoever renders text."""

    def __init__(self, provider: FontProvider | None = None) -> None:
        self._provider = provider if provider is not None else FontToolsFontProvider()
        self._fonts: dict[str, FontHandle] = {}

    @property
    def provider(self) -> FontProvider:
        return self._provider

    def register(
        self,
        family: str,
        source: FontSource,
        weight: int = 400,
        style: str = "normal",
        variant: str = "normal",
    ) -> FontHandle:
        if not family or not family.strip():
            raise ValueError("font family must be a non-empty string")
        handle = FontHandle(
            family=family,
            source=source,
            provider=self._provider,
            weight=weight,
            style=style,
            variant=variant,
        )
        self._fonts[family] = handle
        return handle

    def unregister(self, family: str) -> None:
        self._fonts.pop(family, None)

    def clear(self) -> None:
        self._fonts.clear()

    def families(self) -> list[str]:
        return list(self._fonts)

    def __contains__(self, family: object) -> bool:
        return family in self._fonts

    def __len__(self) -> int:
        return len(self._fonts)

    def find(self, family: str) -> FontHandle:
        """Exact family match, else the first registered font with a warning."""
        handle = self._fonts.get(family)
        if handle is not None:
            return handle
        if not self._fonts:
            raise NoFontAvailableError(f"no fonts registered (requested `{family}`)")
        fallback = next(iter(self._fonts.values()))
        LOGGER.warning("font family `%s` not registered; falling back to `%s`", family, fallback.family)
        return fallback


class _OutlinePen(BasePen):
    """Records glyph outlines as path commands in pixel space with y pointing down."""

    def __init__(self, glyph_set: Any, scale: float, baseline_y: float) -> None:
        super().__init__(glyph_set)
        self.commands: list[OutlineCommand] = []
        self.origin_x = 0.0
        self._scale = scale
        self._baseline_y = baseline_y

    def _point(self, pt: tuple[float, float]) -> Point:
        return Point(self.origin_x + pt[0] * self._scale, self._baseline_y - pt[1] * self._scale)

    def _moveTo(self, pt: tuple[float, float]) -> None:
        self.commands.append(MoveTo(self._point(pt)))

    def _lineTo(self, pt: tuple[float, float]) -> None:
        self.commands.append(LineTo(self._point(pt)))

    def _qCurveToOne(self, pt1: tuple[float, float], pt2: tuple[float, float]) -> None:
        self.commands.append(QuadraticCurveTo(self._point(pt1), self._point(pt2)))

    def _curveToOne(
        self, pt1: tuple[float, float], pt2: tuple[float, float], pt3: tuple[float, float]
    ) -> None:
        self.commands.append(BezierCurveTo(self._point(pt1), self._point(pt2), self._point(pt3)))

    def _closePath(self) -> None:
        self.commands.append(ClosePath())


class FontToolsFontProvider:
    """TrueType/OpenType provider backed by fontTools."""

    def load(self, source: FontSource) -> TTFont:
        if isinstance(source, (bytes, bytearray)):
            return TTFont(BytesIO(bytes(source)))
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"font file not found: {path}")
        return TTFont(str(path))

    def units_per_em(self, face: TTFont) -> int:
        return int(face["head"].unitsPerEm)

    def ascender(self, face: TTFont) -> float:
        return float(face["hhea"].ascent)

    def descender(self, face: TTFont) -> float:
        return float(face["hhea"].descent)

    def get_outline(self, face: TTFont, text: str, x: float, y: float, size: float) -> list[OutlineCommand]:
        glyph_set = face.getGlyphSet()
        scale = size / self.units_per_em(face)
        pen = _OutlinePen(glyph_set, scale=scale, baseline_y=y)
        pen.origin_x = x
        for name in self._glyph_names(face, text):
            glyph = glyph_set[name]
            glyph.draw(pen)
            pen.origin_x += glyph.width * scale
        return pen.commands

    def get_advance_widths(self, face: TTFont, text: str) -> list[float]:
        metrics = face["hmtx"]
        return [float(metrics[name][0]) for name in self._glyph_names(face, text)]

    def _glyph_names(self, face: TTFont, text: str) -> list[str]:
        cmap = face.getBestCmap() or {}
        order = set(face.getGlyphOrder())
        names = []
        for ch in text:
            name = cmap.get(ord(ch), ".notdef")
            names.append(name if name in order else ".notdef")
        return names
