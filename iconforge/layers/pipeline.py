"""Fixed layer pipeline and its cache bookkeeping.

Dependency graph::

    base image
        |
       hue        root, no dependencies
        |
      decal       depends on hue (reads its dominant colour)
        |
     overlay      depends on hue and decal (its cached frame holds both), drawn last
        |
    composite     depends on hue, decal and overlay
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging

from iconforge.icon import CacheKey, IconImage
from iconforge.render.svg import VectorRenderer

from .base import CompositeLayer, DependencyVersion, Layer, LayerVersions
from .context import RenderContext
from .decal import DecalConfig
from .hue_rotation import HueRotationConfig
from .overlay import OverlayConfig


LOGGER = logging.getLogger(__name__)


@dataclass
class LayerPipeline:
    hue: Layer[HueRotationConfig] = field(default_factory=lambda: Layer(name="hue"))
    decal: Layer[DecalConfig] = field(default_factory=lambda: Layer(name="decal"))
    overlay: Layer[OverlayConfig] = field(default_factory=lambda: Layer(name="overlay"))
    composite: CompositeLayer = field(default_factory=CompositeLayer)
    vectors: VectorRenderer = field(default_factory=VectorRenderer)

    def layer_versions(self) -> LayerVersions:
        return LayerVersions(
            hue=self.hue.version,
            decal=self.decal.version,
            overlay=self.overlay.version,
        )

    def composite_dependencies(self) -> DependencyVersion:
        versions = self.layer_versions()
        return DependencyVersion.combine((versions.hue, versions.decal, versions.overlay))

    def invalidate_all(self) -> None:
        self.hue.invalidate()
        self.decal.invalidate()
        self.overlay.invalidate()
        self.composite.invalidate()

    def render(self, base: IconImage) -> IconImage:
        key = CacheKey.from_icon(base)
        deps = self.composite_dependencies()
        cached = self.composite.get_cached(key, deps)
        if cached is not None:
            LOGGER.debug("composite cache hit for %s", key)
            return cached

        ctx = RenderContext(image=base, vectors=self.vectors)
        versions = self.layer_versions()
        self.hue.apply(ctx, key, versions)
        self.decal.apply(ctx, key, versions)
        self.overlay.apply(ctx, key, versions)

        self.composite.store(key, ctx.image, deps)
        return ctx.image
