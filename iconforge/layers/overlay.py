from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Optional

from iconforge.icon import RectPx
from iconforge.render.raster import composite_over
from iconforge.render.symbols import SvgSource, SymbolResolver

from .base import DependencyVersion, LayerVersions
from .context import RenderContext


LOGGER = logging.getLogger(__name__)

SCALE_EPSILON = 0.0001


class OverlayPosition(Enum):
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    CENTER = "center"


@dataclass(frozen=True)
class OverlayConfig:
    """Full-colour SVG or emoji drawn on top of everything else."""

    source: SvgSource
    position: OverlayPosition
    scale: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", SvgSource.coerce(self.source))
        object.__setattr__(self, "position", OverlayPosition(self.position))
        scale = float(self.scale)
        if not math.isfinite(scale):
            raise ValueError("overlay scale must be finite")
        object.__setattr__(self, "scale", max(0.0, min(1.0, scale)))

    @classmethod
    def from_emoji(
        cls, emoji: str, position: OverlayPosition, scale: float, resolver: SymbolResolver
    ) -> Optional["OverlayConfig"]:
        source = SvgSource.from_emoji(emoji, resolver)
        if source is None:
            return None
        return cls(source, position, scale)

    def differs_from(self, other: "OverlayConfig") -> bool:
        return (
            self.source != other.source
            or self.position != other.position
            or abs(self.scale - other.scale) > SCALE_EPSILON
        )

    @classmethod
    def dependencies(cls, versions: LayerVersions) -> DependencyVersion:
        # The cached frame already holds the hue and decal output beneath the overlay.
        return DependencyVersion.combine((versions.hue, versions.decal))

    def transform(self, ctx: RenderContext) -> None:
        bounds = ctx.image.content_bounds
        size = int(min(bounds.width, bounds.height) * self.scale)
        if size == 0:
            LOGGER.debug("%s size rounds to zero, skipped", type(self).__name__)
            return
        overlay = ctx.vectors.render(self.source, size)
        if overlay is None:
            return
        overlay_h, overlay_w = overlay.shape[:2]
        x, y = self.placement(bounds, overlay_w, overlay_h)
        data = ctx.image.pixels_copy()
        composite_over(data, overlay, x, y)
        ctx.image = ctx.image.with_data(data)

    def emit(self, ctx: RenderContext) -> None:
        return None

    def placement(self, bounds: RectPx, width: int, height: int) -> tuple[int, int]:
        """Top-left corner for a ``width x height`` overlay inside ``bounds``."""
        left = bounds.x
        top = bounds.y
        right = bounds.right() - width
        bottom = bounds.bottom() - height
        if self.position is OverlayPosition.TOP_LEFT:
            return (left, top)
        if self.position is OverlayPosition.TOP_RIGHT:
            return (right, top)
        if self.position is OverlayPosition.BOTTOM_LEFT:
            return (left, bottom)
        if self.position is OverlayPosition.BOTTOM_RIGHT:
            return (right, bottom)
        return (left + (bounds.width - width) // 2, top + (bounds.height - height) // 2)
