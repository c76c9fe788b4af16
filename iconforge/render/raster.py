from __future__ import annotations

import re

import numpy as np


RGBA = tuple[int, int, int, int]

_COLOR_ATTR = re.compile(r'\b(fill|stroke)="([^"]*)"')
_KEEP_VALUES = frozenset({"none", "transparent"})


def new_canvas(width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> np.ndarray:
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    canvas[:, :, 0] = color[0]
    canvas[:, :, 1] = color[1]
    canvas[:, :, 2] = color[2]
    canvas[:, :, 3] = color[3]
    return canvas


def to_u8(values: np.ndarray) -> np.ndarray:
    """Map normalised floats to bytes, rounding half away from zero."""
    return np.clip(np.floor(values * 255.0 + 0.5), 0, 255).astype(np.uint8)


def unpremultiply(premultiplied: np.ndarray) -> np.ndarray:
    """Convert a premultiplied ``(h, w, 4)`` uint8 buffer to straight alpha."""
    out = np.zeros_like(premultiplied, dtype=np.uint8)
    alpha = premultiplied[:, :, 3].astype(np.float64)
    visible = alpha > 0
    if not np.any(visible):
        return out
    norm = (alpha / 255.0)[visible]
    rgb = premultiplied[:, :, :3][visible].astype(np.float64) / norm[:, None]
    out[:, :, :3][visible] = np.minimum(np.floor(rgb + 0.5), 255.0).astype(np.uint8)
    out[:, :, 3] = premultiplied[:, :, 3]
    return out


def composite_over(dst: np.ndarray, src: np.ndarray, x: int, y: int) -> None:
    """Source-over blend ``src`` onto ``dst`` in place, top-left at ``(x, y)``.

    Both buffers hold straight (not premultiplied) alpha. Source pixels that
    fall outside ``dst`` are dropped.
    """
    src_h, src_w = src.shape[:2]
    dst_h, dst_w = dst.shape[:2]
    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(dst_w, x + src_w)
    y1 = min(dst_h, y + src_h)
    if x1 <= x0 or y1 <= y0:
        return

    patch = src[y0 - y : y1 - y, x0 - x : x1 - x].astype(np.float64) / 255.0
    view = dst[y0:y1, x0:x1]
    under = view.astype(np.float64) / 255.0

    sa = patch[:, :, 3:4]
    da = under[:, :, 3:4]
    out_a = sa + da * (1.0 - sa)
    safe = np.where(out_a > 0.0, out_a, 1.0)
    out_rgb = (patch[:, :, :3] * sa + under[:, :, :3] * da * (1.0 - sa)) / safe
    out_rgb = np.where(out_a > 0.0, out_rgb, 0.0)

    view[:, :, :3] = to_u8(out_rgb)
    view[:, :, 3] = to_u8(out_a[:, :, 0])


def rgb_to_hsl(rgb: np.ndarray) -> np.ndarray:
    """Convert ``(..., 3)`` normalised RGB to HSL with hue in degrees."""
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    maxc = np.max(rgb, axis=-1)
    minc = np.min(rgb, axis=-1)
    lightness = (maxc + minc) / 2.0
    delta = maxc - minc
    chromatic = delta > 0.0
    safe_delta = np.where(chromatic, delta, 1.0)

    denom = np.where(lightness > 0.5, 2.0 - maxc - minc, maxc + minc)
    saturation = np.where(chromatic, delta / np.where(denom > 0.0, denom, 1.0), 0.0)

    hue = np.select(
        [maxc == r, maxc == g],
        [
            np.mod((g - b) / safe_delta, 6.0),
            (b - r) / safe_delta + 2.0,
        ],
        default=(r - g) / safe_delta + 4.0,
    )
    hue = np.where(chromatic, hue * 60.0, 0.0)
    return np.stack([hue, saturation, lightness], axis=-1)


def hsl_to_rgb(hsl: np.ndarray) -> np.ndarray:
    hue = np.mod(hsl[..., 0], 360.0)
    saturation = hsl[..., 1]
    lightness = hsl[..., 2]
    chroma = (1.0 - np.abs(2.0 * lightness - 1.0)) * saturation
    sector = hue / 60.0
    second = chroma * (1.0 - np.abs(np.mod(sector, 2.0) - 1.0))
    zero = np.zeros_like(chroma)
    idx = np.floor(sector).astype(np.int64) % 6
    r = np.choose(idx, [chroma, second, zero, zero, second, chroma])
    g = np.choose(idx, [second, chroma, chroma, second, zero, zero])
    b = np.choose(idx, [zero, zero, second, chroma, chroma, second])
    m = lightness - chroma / 2.0
    return np.clip(np.stack([r + m, g + m, b + m], axis=-1), 0.0, 1.0)


def replace_svg_colors(svg_markup: str, color: RGBA) -> str:
    """Rewrite every ``fill="..."``/``stroke="..."`` value to ``color``.

    Purely textual: values inside ``style`` attributes are not touched.
    """
    hex_color = "#{:02x}{:02x}{:02x}".format(color[0], color[1], color[2])

    def _swap(match: re.Match[str]) -> str:
        value = match.group(2)
        if value in _KEEP_VALUES:
            return match.group(0)
        return f'{match.group(1)}="{hex_color}"'

    return _COLOR_ATTR.sub(_swap, svg_markup)
