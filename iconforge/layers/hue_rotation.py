from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from iconforge.icon import IconImage
from iconforge.render.raster import hsl_to_rgb, rgb_to_hsl, to_u8

from .base import DependencyVersion, LayerVersions
from .context import DominantColor, RenderContext


DEGREES_EPSILON = 0.001
FALLBACK_COLOR = (128, 128, 128, 255)


@dataclass(frozen=True)
class HueRotationConfig:
    """Rotate the hue of every visible pixel by ``degrees``.

    Publishes :class:`DominantColor` of the rotated image.
    """

    degrees: float

    def __post_init__(self) -> None:
        degrees = float(self.degrees)
        if not math.isfinite(degrees):
            raise ValueError("hue rotation degrees must be finite")
        object.__setattr__(self, "degrees", degrees % 360.0)

    def differs_from(self, other: "HueRotationConfig") -> bool:
        return abs(self.degrees - other.degrees) > DEGREES_EPSILON

    @classmethod
    def dependencies(cls, versions: LayerVersions) -> DependencyVersion:
        return DependencyVersion.NONE

    def transform(self, ctx: RenderContext) -> None:
        ctx.image = apply_hue_rotation(ctx.image, self.degrees)

    def emit(self, ctx: RenderContext) -> None:
        ctx.set(DominantColor(*sample_dominant_color(ctx.image)))


def apply_hue_rotation(icon: IconImage, degrees: float) -> IconImage:
    data = icon.pixels_copy()
    visible = data[:, :, 3] > 0
    if np.any(visible):
        rgb = data[:, :, :3][visible].astype(np.float64) / 255.0
        hsl = rgb_to_hsl(rgb)
        hsl[:, 0] = hsl[:, 0] + degrees
        data[:, :, :3][visible] = to_u8(hsl_to_rgb(hsl))
    return icon.with_data(data)


def sample_dominant_color(icon: IconImage) -> tuple[int, int, int, int]:
    """Alpha-weighted average colour over the content bounds.

    Uses integer arithmetic throughout; returns mid grey when nothing is
    visible.
    """
    bounds = icon.content_bounds
    height, width = icon.data.shape[:2]
    region = icon.data[bounds.y : min(bounds.bottom(), height), bounds.x : min(bounds.right(), width)]
    pixels = region.reshape(-1, 4).astype(np.int64)
    alpha = pixels[:, 3]
    count = int(np.count_nonzero(alpha))
    total_a = int(alpha.sum())
    if count == 0 or total_a == 0:
        return FALLBACK_COLOR
    r = int((pixels[:, 0] * alpha).sum()) // total_a
    g = int((pixels[:, 1] * alpha).sum()) // total_a
    b = int((pixels[:, 2] * alpha).sum()) // total_a
    return (r, g, b, total_a // count)
