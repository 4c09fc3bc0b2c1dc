from __future__ import annotations

from dataclasses import dataclass

from .geometry import Line, sorted_intersections


@dataclass(frozen=True)
class ClipBoundary:
    """Flattened clip outline tested with the even-odd rule."""

    lines: tuple[Line, ...]

    def contains(self, x: float, y: float) -> bool:
        crossings = sorted_intersections(self.lines, y)
        left = sum(1 for ix in crossings if ix < x)
        return left % 2 == 1


def point_inside_clip(clip: ClipBoundary | None, x: float, y: float) -> bool:
    if clip is None:
        return True
    return clip.contains(x, y)
