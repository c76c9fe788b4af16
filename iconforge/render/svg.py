from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import math
import re
from typing import Iterator, Optional
import xml.etree.ElementTree as ET

import numpy as np
from PIL import Image, ImageColor, ImageDraw

from .raster import RGBA, replace_svg_colors, to_u8, unpremultiply
from .symbols import NullSymbolResolver, SvgSource, SymbolResolver


LOGGER = logging.getLogger(__name__)

Point = tuple[float, float]

_SKIP_SUBTREES = {"defs", "clipPath", "mask", "symbol", "title", "desc", "metadata", "style", "linearGradient", "radialGradient"}
_NUMBER = re.compile(r"[-+]?(?:\d*\.\d+|\d+\.?)(?:[eE][-+]?\d+)?")
_LENGTH = re.compile(rf"({_NUMBER.pattern})(?:px)?")
_PATH_TOKEN = re.compile(rf"[MmLlHhVvCcSsQqTtAaZz]|{_NUMBER.pattern}")
_CURVE_SEGMENTS = 16
_ELLIPSE_SEGMENTS = 64


@dataclass(frozen=True)
class SvgShape:
    """One drawable element flattened to polylines in user units."""

    tag: str
    subpaths: tuple[tuple[Point, ...], ...]
    closed: tuple[bool, ...]
    fill: Optional[RGBA]
    stroke: Optional[RGBA]
    stroke_width: float


@dataclass(frozen=True)
class _Style:
    fill: Optional[RGBA] = (0, 0, 0, 255)
    stroke: Optional[RGBA] = None
    stroke_width: float = 1.0
    opacity: float = 1.0
    fill_opacity: float = 1.0
    stroke_opacity: float = 1.0


@dataclass
class SvgDocument:
    width: float
    height: float
    viewbox: tuple[float, float, float, float]
    shapes: list[SvgShape]

    @classmethod
    def from_markup(cls, svg_markup: str) -> "SvgDocument":
        root = ET.fromstring(svg_markup)
        return cls._from_root(root)

    @classmethod
    def _from_root(cls, root: ET.Element) -> "SvgDocument":
        if _strip_namespace(root.tag) != "svg":
            raise ValueError("root element must be <svg>")
        width = _parse_length(root.attrib.get("width"))
        height = _parse_length(root.attrib.get("height"))
        viewbox = _parse_viewbox(root.attrib.get("viewBox"))
        if viewbox is None:
            vb = (0.0, 0.0, width or 100.0, height or 100.0)
        else:
            vb = viewbox
        if width is None:
            width = vb[2]
        if height is None:
            height = vb[3]
        if width <= 0 or height <= 0 or vb[2] <= 0 or vb[3] <= 0:
            raise ValueError("svg must have a positive size")
        shapes = list(_walk(root, _style_for(root, _Style())))
        return cls(width=width, height=height, viewbox=vb, shapes=shapes)

    def fit_size(self, size: int) -> tuple[float, int, int]:
        """Uniform scale mapping the larger side to ``size``, plus output pixels."""
        scale = float(size) / max(self.width, self.height)
        return scale, int(math.ceil(self.width * scale)), int(math.ceil(self.height * scale))

    def rasterize(self, size: int, *, supersample: int = 4) -> np.ndarray:
        """Paint every shape into a premultiplied RGBA buffer fitted to ``size``."""
        ss = max(1, int(supersample))
        scale, width, height = self.fit_size(size)
        vb_x, vb_y, vb_w, vb_h = self.viewbox
        sx = scale * self.width / vb_w * ss
        sy = scale * self.height / vb_h * ss
        accum = np.zeros((height, width, 4), dtype=np.float64)

        def to_px(pt: Point) -> tuple[float, float]:
            return ((pt[0] - vb_x) * sx, (pt[1] - vb_y) * sy)

        for shape in self.shapes:
            polylines = [[to_px(p) for p in sub] for sub in shape.subpaths]
            if shape.fill is not None:
                coverage = _fill_coverage(polylines, width, height, ss)
                _paint(accum, coverage, shape.fill)
            if shape.stroke is not None and shape.stroke_width > 0:
                line_px = max(ss, int(round(shape.stroke_width * (abs(sx) + abs(sy)) / 2.0)))
                coverage = _stroke_coverage(polylines, shape.closed, line_px, width, height, ss)
                _paint(accum, coverage, shape.stroke)
        return to_u8(accum)


def render_svg(svg_markup: str, size: int, *, color: Optional[RGBA] = None, supersample: int = 4) -> Optional[np.ndarray]:
    """Rasterise markup so its larger side is ``size`` pixels.

    When ``color`` is given every fill/stroke value is replaced by it first.
    Returns straight-alpha RGBA, or ``None`` when the markup cannot be parsed.
    """
    if size <= 0:
        return None
    if color is not None:
        svg_markup = replace_svg_colors(svg_markup, color)
    try:
        doc = SvgDocument.from_markup(svg_markup)
    except (ET.ParseError, ValueError) as exc:
        LOGGER.debug("svg parse failed: %s", exc)
        return None
    _, width, height = doc.fit_size(size)
    if width <= 0 or height <= 0:
        return None
    return unpremultiply(doc.rasterize(size, supersample=supersample))


@dataclass(frozen=True)
class VectorRenderer:
    """Resolves an ``SvgSource`` and rasterises it with fixed quality settings."""

    resolver: SymbolResolver = field(default_factory=NullSymbolResolver)
    supersample: int = 4

    def render(self, source: SvgSource, size: int, *, color: Optional[RGBA] = None) -> Optional[np.ndarray]:
        markup = source.resolve(self.resolver)
        if markup is None:
            LOGGER.debug("unresolved %s source %r", source.kind.value, source.value[:32])
            return None
        return render_svg(markup, size, color=color, supersample=self.supersample)


def _fill_coverage(polylines: list[list[tuple[float, float]]], width: int, height: int, ss: int) -> np.ndarray:
    mask = np.zeros((height * ss, width * ss), dtype=bool)
    for pts in polylines:
        if len(pts) < 3:
            continue
        layer = Image.new("L", (width * ss, height * ss), 0)
        ImageDraw.Draw(layer).polygon(pts, fill=255)
        # Even-odd: overlapping subpaths punch holes.
        mask ^= np.asarray(layer) > 0
    return _downsample(mask, width, height, ss)


def _stroke_coverage(
    polylines: list[list[tuple[float, float]]],
    closed: tuple[bool, ...],
    line_px: int,
    width: int,
    height: int,
    ss: int,
) -> np.ndarray:
    layer = Image.new("L", (width * ss, height * ss), 0)
    draw = ImageDraw.Draw(layer)
    for pts, is_closed in zip(polylines, closed):
        if len(pts) < 2:
            continue
        seq = pts + [pts[0]] if is_closed else pts
        draw.line(seq, fill=255, width=line_px, joint="curve")
    return _downsample(np.asarray(layer) > 0, width, height, ss)


def _downsample(mask: np.ndarray, width: int, height: int, ss: int) -> np.ndarray:
    return mask.reshape(height, ss, width, ss).mean(axis=(1, 3))


def _paint(accum: np.ndarray, coverage: np.ndarray, color: RGBA) -> None:
    src_a = coverage * (color[3] / 255.0)
    if not np.any(src_a > 0):
        return
    inv = 1.0 - src_a
    for channel in range(3):
        accum[:, :, channel] = (color[channel] / 255.0) * src_a + accum[:, :, channel] * inv
    accum[:, :, 3] = src_a + accum[:, :, 3] * inv


def _walk(elem: ET.Element, style: _Style) -> Iterator[SvgShape]:
    for child in elem:
        tag = _strip_namespace(child.tag) if isinstance(child.tag, str) else ""
        if not tag or tag in _SKIP_SUBTREES:
            continue
        child_style = _style_for(child, style)
        if tag in ("g", "a", "switch"):
            yield from _walk(child, child_style)
            continue
        geometry = _geometry(tag, child)
        if geometry is None:
            continue
        subpaths, closed = geometry
        # Lines have no interior.
        fill = None if tag == "line" else _effective(child_style.fill, child_style.fill_opacity, child_style.opacity)
        stroke = _effective(child_style.stroke, child_style.stroke_opacity, child_style.opacity)
        if fill is None and stroke is None:
            continue
        yield SvgShape(
            tag=tag,
            subpaths=tuple(tuple(p) for p in subpaths),
            closed=tuple(closed),
            fill=fill,
            stroke=stroke,
            stroke_width=child_style.stroke_width,
        )


def _style_for(elem: ET.Element, parent: _Style) -> _Style:
    style = parent
    attrib = elem.attrib
    if "fill" in attrib:
        style = replace(style, fill=_parse_color(attrib["fill"], parent.fill))
    if "stroke" in attrib:
        style = replace(style, stroke=_parse_color(attrib["stroke"], parent.stroke))
    stroke_width = _parse_length(attrib.get("stroke-width"))
    if stroke_width is not None:
        style = replace(style, stroke_width=stroke_width)
    opacity = _parse_fraction(attrib.get("opacity"))
    if opacity is not None:
        style = replace(style, opacity=parent.opacity * opacity)
    fill_opacity = _parse_fraction(attrib.get("fill-opacity"))
    if fill_opacity is not None:
        style = replace(style, fill_opacity=fill_opacity)
    stroke_opacity = _parse_fraction(attrib.get("stroke-opacity"))
    if stroke_opacity is not None:
        style = replace(style, stroke_opacity=stroke_opacity)
    return style


def _effective(color: Optional[RGBA], paint_opacity: float, opacity: float) -> Optional[RGBA]:
    if color is None:
        return None
    r, g, b, a = color
    alpha = max(0, min(255, int(round(a * paint_opacity * opacity))))
    if alpha == 0:
        return None
    return (r, g, b, alpha)


def _geometry(tag: str, elem: ET.Element) -> Optional[tuple[list[list[Point]], list[bool]]]:
    attrib = elem.attrib
    if tag == "rect":
        x = _parse_length(attrib.get("x")) or 0.0
        y = _parse_length(attrib.get("y")) or 0.0
        w = _parse_length(attrib.get("width")) or 0.0
        h = _parse_length(attrib.get("height")) or 0.0
        if w <= 0 or h <= 0:
            return None
        return [[(x, y), (x + w, y), (x + w, y + h), (x, y + h)]], [True]
    if tag in ("circle", "ellipse"):
        cx = _parse_length(attrib.get("cx")) or 0.0
        cy = _parse_length(attrib.get("cy")) or 0.0
        if tag == "circle":
            rx = ry = _parse_length(attrib.get("r")) or 0.0
        else:
            rx = _parse_length(attrib.get("rx")) or 0.0
            ry = _parse_length(attrib.get("ry")) or 0.0
        if rx <= 0 or ry <= 0:
            return None
        pts = [
            (cx + rx * math.cos(2 * math.pi * i / _ELLIPSE_SEGMENTS), cy + ry * math.sin(2 * math.pi * i / _ELLIPSE_SEGMENTS))
            for i in range(_ELLIPSE_SEGMENTS)
        ]
        return [pts], [True]
    if tag == "line":
        coords = [_parse_length(attrib.get(k)) for k in ("x1", "y1", "x2", "y2")]
        x1, y1, x2, y2 = (c or 0.0 for c in coords)
        return [[(x1, y1), (x2, y2)]], [False]
    if tag in ("polygon", "polyline"):
        points = _parse_points(attrib.get("points"))
        if len(points) < 2:
            return None
        return [points], [tag == "polygon"]
    if tag == "path":
        subpaths = _parse_path(attrib.get("d", ""))
        if not subpaths:
            return None
        return [pts for pts, _ in subpaths], [closed for _, closed in subpaths]
    return None


def _parse_path(d: str) -> list[tuple[list[Point], bool]]:
    tokens = _PATH_TOKEN.findall(d)
    out: list[tuple[list[Point], bool]] = []
    current: list[Point] = []
    cmd = ""
    x = y = 0.0
    start = (0.0, 0.0)
    last_ctrl: Optional[Point] = None
    i = 0

    def take(n: int) -> list[float]:
        nonlocal i
        if i + n > len(tokens) or any(t.isalpha() for t in tokens[i : i + n]):
            raise ValueError("truncated path data")
        vals = [float(t) for t in tokens[i : i + n]]
        i += n
        return vals

    def flush(closed: bool) -> None:
        nonlocal current
        if len(current) >= 2:
            out.append((current, closed))
        current = []

    try:
        while i < len(tokens):
            tok = tokens[i]
            if tok.isalpha():
                cmd = tok
                i += 1
                if cmd in "Zz":
                    flush(True)
                    x, y = start
                    last_ctrl = None
                    continue
            elif not cmd:
                raise ValueError("path data must start with a command")
            rel = cmd.islower()
            base_x, base_y = (x, y) if rel else (0.0, 0.0)
            op = cmd.upper()
            if op != "M" and not current:
                current = [(x, y)]
            if op == "M":
                px, py = take(2)
                flush(False)
                x, y = base_x + px, base_y + py
                start = (x, y)
                current = [(x, y)]
                # Implicit pairs after a moveto are linetos.
                cmd = "l" if rel else "L"
                last_ctrl = None
            elif op == "L":
                px, py = take(2)
                x, y = base_x + px, base_y + py
                current.append((x, y))
                last_ctrl = None
            elif op == "H":
                (px,) = take(1)
                x = base_x + px
                current.append((x, y))
                last_ctrl = None
            elif op == "V":
                (py,) = take(1)
                y = base_y + py
                current.append((x, y))
                last_ctrl = None
            elif op in ("C", "S"):
                if op == "C":
                    c1x, c1y, c2x, c2y, ex, ey = take(6)
                    c1 = (base_x + c1x, base_y + c1y)
                else:
                    c2x, c2y, ex, ey = take(4)
                    c1 = (2 * x - last_ctrl[0], 2 * y - last_ctrl[1]) if last_ctrl else (x, y)
                c2 = (base_x + c2x, base_y + c2y)
                end = (base_x + ex, base_y + ey)
                current.extend(_cubic((x, y), c1, c2, end))
                last_ctrl = c2
                x, y = end
            elif op in ("Q", "T"):
                if op == "Q":
                    qx, qy, ex, ey = take(4)
                    ctrl = (base_x + qx, base_y + qy)
                else:
                    ex, ey = take(2)
                    ctrl = (2 * x - last_ctrl[0], 2 * y - last_ctrl[1]) if last_ctrl else (x, y)
                end = (base_x + ex, base_y + ey)
                current.extend(_quadratic((x, y), ctrl, end))
                last_ctrl = ctrl
                x, y = end
            elif op == "A":
                rx, ry, rot, large, sweep, ex, ey = take(7)
                end = (base_x + ex, base_y + ey)
                current.extend(_arc((x, y), rx, ry, rot, bool(large), bool(sweep), end))
                last_ctrl = None
                x, y = end
            else:
                raise ValueError(f"unsupported path command {cmd!r}")
    except ValueError as exc:
        # Keep what was drawn before the error, as SVG renderers do.
        LOGGER.debug("path data truncated: %s", exc)
    flush(False)
    return out


def _cubic(p0: Point, p1: Point, p2: Point, p3: Point) -> list[Point]:
    pts = []
    for step in range(1, _CURVE_SEGMENTS + 1):
        t = step / _CURVE_SEGMENTS
        u = 1.0 - t
        pts.append(
            (
                u * u * u * p0[0] + 3 * u * u * t * p1[0] + 3 * u * t * t * p2[0] + t * t * t * p3[0],
                u * u * u * p0[1] + 3 * u * u * t * p1[1] + 3 * u * t * t * p2[1] + t * t * t * p3[1],
            )
        )
    return pts


def _quadratic(p0: Point, p1: Point, p2: Point) -> list[Point]:
    pts = []
    for step in range(1, _CURVE_SEGMENTS + 1):
        t = step / _CURVE_SEGMENTS
        u = 1.0 - t
        pts.append(
            (
                u * u * p0[0] + 2 * u * t * p1[0] + t * t * p2[0],
                u * u * p0[1] + 2 * u * t * p1[1] + t * t * p2[1],
            )
        )
    return pts


def _arc(p0: Point, rx: float, ry: float, rotation: float, large: bool, sweep: bool, p1: Point) -> list[Point]:
    """Flatten an SVG elliptical arc (endpoint parameterisation)."""
    rx, ry = abs(rx), abs(ry)
    if rx == 0 or ry == 0 or p0 == p1:
        return [p1]
    phi = math.radians(rotation)
    cos_phi, sin_phi = math.cos(phi), math.sin(phi)
    dx = (p0[0] - p1[0]) / 2.0
    dy = (p0[1] - p1[1]) / 2.0
    x1p = cos_phi * dx + sin_phi * dy
    y1p = -sin_phi * dx + cos_phi * dy

    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1.0:
        rx *= math.sqrt(lam)
        ry *= math.sqrt(lam)
    num = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
    den = rx * rx * y1p * y1p + ry * ry * x1p * x1p
    coef = math.sqrt(max(0.0, num / den)) if den else 0.0
    if large == sweep:
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx
    cx = cos_phi * cxp - sin_phi * cyp + (p0[0] + p1[0]) / 2.0
    cy = sin_phi * cxp + cos_phi * cyp + (p0[1] + p1[1]) / 2.0

    ux, uy = (x1p - cxp) / rx, (y1p - cyp) / ry
    vx, vy = (-x1p - cxp) / rx, (-y1p - cyp) / ry
    theta1 = math.atan2(uy, ux)
    delta = math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)
    if not sweep and delta > 0:
        delta -= 2 * math.pi
    elif sweep and delta < 0:
        delta += 2 * math.pi

    pts = []
    for step in range(1, _CURVE_SEGMENTS + 1):
        t = theta1 + delta * step / _CURVE_SEGMENTS
        ex = rx * math.cos(t)
        ey = ry * math.sin(t)
        pts.append((cos_phi * ex - sin_phi * ey + cx, sin_phi * ex + cos_phi * ey + cy))
    return pts


def _strip_namespace(tag: str) -> str:
    return tag.rpartition("}")[2]


def _parse_length(value: Optional[str]) -> Optional[float]:
    """Plain or ``px`` user-unit length; other units are unsupported."""
    if value is None:
        return None
    match = _LENGTH.fullmatch(value.strip())
    return float(match.group(1)) if match else None


def _numbers(value: Optional[str]) -> list[float]:
    return [float(token) for token in _NUMBER.findall(value or "")]


def _parse_fraction(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    value = value.strip()
    try:
        if value.endswith("%"):
            return max(0.0, min(1.0, float(value[:-1]) / 100.0))
        return max(0.0, min(1.0, float(value)))
    except ValueError:
        return None


def _parse_viewbox(value: Optional[str]) -> Optional[tuple[float, float, float, float]]:
    numbers = _numbers(value)
    if len(numbers) != 4:
        return None
    min_x, min_y, width, height = numbers
    return (min_x, min_y, width, height)


def _parse_points(value: Optional[str]) -> list[Point]:
    # Same number grammar as path data, so "1,2 3-4" and "1 2,3 -4" both parse.
    numbers = _numbers(value)
    return list(zip(numbers[0::2], numbers[1::2]))


def _parse_color(value: str, inherited: Optional[RGBA]) -> Optional[RGBA]:
    value = value.strip()
    if value in ("", "inherit"):
        return inherited
    if value in ("none", "transparent"):
        return None
    if value == "currentColor":
        return (0, 0, 0, 255)
    try:
        rgb = ImageColor.getrgb(value)
    except ValueError:
        LOGGER.debug("unsupported paint %r, leaving unpainted", value)
        return None
    if len(rgb) == 4:
        return (rgb[0], rgb[1], rgb[2], rgb[3])
    return (rgb[0], rgb[1], rgb[2], 255)
