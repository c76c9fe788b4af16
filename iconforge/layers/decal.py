from __future__ import annotations

from dataclasses import dataclass
import logging
import math

import numpy as np

from iconforge.render.raster import RGBA, composite_over, hsl_to_rgb, rgb_to_hsl, to_u8
from iconforge.render.symbols import SvgSource

from .base import DependencyVersion, LayerVersions
from .context import DominantColor, RenderContext
from .hue_rotation import sample_dominant_color


LOGGER = logging.getLogger(__name__)

SCALE_EPSILON = 0.0001
DARKEN_AMOUNT = 0.15


def _clamp_unit(value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError("scale must be finite")
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class DecalConfig:
    """Monochrome SVG imprinted at the centre of the content bounds.

    Every fill and stroke is repainted with the icon's dominant colour,
    darkened slightly. Uses the upstream :class:`DominantColor` when one was
    published and samples the current image otherwise. Full-colour artwork
    belongs in an overlay instead.
    """

    source: SvgSource
    scale: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", SvgSource.coerce(self.source))
        object.__setattr__(self, "scale", _clamp_unit(self.scale))

    def differs_from(self, other: "DecalConfig") -> bool:
        return self.source != other.source or abs(self.scale - other.scale) > SCALE_EPSILON

    @classmethod
    def dependencies(cls, versions: LayerVersions) -> DependencyVersion:
        # The decal colour comes from the hue layer's output.
        return DependencyVersion.from_version(versions.hue)

    def transform(self, ctx: RenderContext) -> None:
        color = self.decal_color(ctx)

        bounds = ctx.image.content_bounds
        size = int(min(bounds.width, bounds.height) * self.scale)
        if size == 0:
            LOGGER.debug("%s size rounds to zero, skipped", type(self).__name__)
            return
        decal = ctx.vectors.render(self.source, size, color=color)
        if decal is None:
            return

        decal_h, decal_w = decal.shape[:2]
        x = bounds.x + (bounds.width - decal_w) // 2
        y = bounds.y + (bounds.height - decal_h) // 2
        data = ctx.image.pixels_copy()
        composite_over(data, decal, x, y)
        ctx.image = ctx.image.with_data(data)

    def emit(self, ctx: RenderContext) -> None:
        return None

    def decal_color(self, ctx: RenderContext) -> RGBA:
        """The colour :meth:`transform` would paint with for ``ctx``."""
        published = ctx.get(DominantColor)
        base_color = published.as_tuple() if published is not None else sample_dominant_color(ctx.image)
        return darken_color(base_color, DARKEN_AMOUNT)


def darken_color(color: RGBA, amount: float) -> RGBA:
    """Lower HSL lightness by ``amount`` (floored at 0), keeping alpha."""
    r, g, b, a = color
    hsl = rgb_to_hsl(np.array([[r, g, b]], dtype=np.float64) / 255.0)
    hsl[0, 2] = max(0.0, hsl[0, 2] - amount)
    out = to_u8(hsl_to_rgb(hsl))[0]
    return (int(out[0]), int(out[1]), int(out[2]), a)
