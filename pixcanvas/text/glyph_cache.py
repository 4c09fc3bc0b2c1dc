from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
import logging
from typing import Protocol

from ..bitmap import PixelBuffer


LOGGER = logging.getLogger(__name__)

GlyphKey = tuple[str, float, str]


@dataclass(frozen=True)
class GlyphBitmap:
    """Rasterised glyph; ``ascent`` is the baseline row inside ``bitmap``.

    ``left`` is the pen-relative column of the bitmap's first column, negative
    when ink starts left of the pen.
    """

    bitmap: PixelBuffer
    advance: float
    ascent: float
    left: int = 0


class GlyphCache(Protocol):
    def contains(self, font: str, size: float, char: str) -> bool:
        ...

    def get(self, font: str, size: float, char: str) -> GlyphBitmap:
        ...

    def insert(self, font: str, size: float, char: str, glyph: GlyphBitmap) -> None:
        ...


class MemoryGlyphCache:
    """Bounded LRU glyph cache keyed by (font family, size, character)."""

    def __init__(self, max_entries: int = 512) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._max_entries = max_entries
        self._entries: OrderedDict[GlyphKey, GlyphBitmap] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def contains(self, font: str, size: float, char: str) -> bool:
        found = (font, float(size), char) in self._entries
        if found:
            self.hits += 1
        else:
            self.misses += 1
        return found

    def get(self, font: str, size: float, char: str) -> GlyphBitmap:
        key = (font, float(size), char)
        glyph = self._entries[key]
        self._entries.move_to_end(key)
        return glyph

    def insert(self, font: str, size: float, char: str, glyph: GlyphBitmap) -> None:
        key = (font, float(size), char)
        self._entries[key] = glyph
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            LOGGER.debug("glyph cache evicted %r", evicted)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
