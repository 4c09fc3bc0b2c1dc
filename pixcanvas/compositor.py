from __future__ import annotations


TRANSPARENT = 0x00000000


def composite(dst: int, src: int, global_alpha: float = 1.0) -> int:
    """Source-over blend of ``src`` onto ``dst`` (both packed ``0xRRGGBBAA``).

    Colour channels use the non-premultiplied form
    ``(cs*as + cd*ad*(1-as)) / (as + ad*(1-as))`` and the result alpha is
    ``as + ad*(1-as)``. When that alpha is zero the result is transparent black.
    """
    sa = (src & 0xFF) / 255.0 * global_alpha
    if sa >= 1.0:
        return src
    sa = max(0.0, sa)
    da = (dst & 0xFF) / 255.0
    dst_weight = da * (1.0 - sa)
    out_a = sa + dst_weight
    if out_a <= 0.0:
        return TRANSPARENT
    if sa == 0.0:
        return dst
    r = _blend_channel((src >> 24) & 0xFF, (dst >> 24) & 0xFF, sa, dst_weight, out_a)
    g = _blend_channel((src >> 16) & 0xFF, (dst >> 16) & 0xFF, sa, dst_weight, out_a)
    b = _blend_channel((src >> 8) & 0xFF, (dst >> 8) & 0xFF, sa, dst_weight, out_a)
    a = min(255, int(out_a * 255.0 + 0.5))
    return (r << 24) | (g << 16) | (b << 8) | a


def _blend_channel(cs: int, cd: int, sa: float, dst_weight: float, out_a: float) -> int:
    value = (cs * sa + cd * dst_weight) / out_a
    return max(0, min(255, int(value + 0.5)))
