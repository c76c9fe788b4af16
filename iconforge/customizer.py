from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional, Protocol

from iconforge.icon import IconImage, IconSet
from iconforge.layers import DecalConfig, HueRotationConfig, LayerPipeline, OverlayConfig
from iconforge.profile import (
    CustomizationProfile,
    DecalSettings,
    HueRotationSettings,
    OverlaySettings,
    SerializableSvgSource,
)
from iconforge.render.svg import VectorRenderer
from iconforge.settings import RenderSettings


LOGGER = logging.getLogger(__name__)


class Configurable(Protocol):
    def apply_profile(self, profile: CustomizationProfile) -> None:
        ...

    def export_profile(self) -> CustomizationProfile:
        ...


@dataclass
class IconCustomizer:
    """Owns the base icon set and the layer pipeline that decorates it.

    Not thread-safe: guard an instance with a lock or keep one per worker.
    """

    base_icons: IconSet
    pipeline: LayerPipeline = field(default_factory=LayerPipeline)

    @classmethod
    def from_settings(cls, base_icons: IconSet, settings: RenderSettings) -> "IconCustomizer":
        vectors = VectorRenderer(resolver=settings.symbol_resolver(), supersample=settings.supersample)
        return cls(base_icons=base_icons, pipeline=LayerPipeline(vectors=vectors))

    def render(self, logical_size: float) -> Optional[IconImage]:
        base = self.base_icons.find_by_logical_size(logical_size)
        if base is None:
            return None
        return self.pipeline.render(base)

    def render_all(self) -> IconSet:
        return IconSet.from_images(self.pipeline.render(base) for base in self.base_icons)

    def clear_cache(self) -> None:
        self.pipeline.invalidate_all()

    def apply_profile(self, profile: CustomizationProfile) -> None:
        pipeline = self.pipeline

        if profile.hue_rotation is not None:
            pipeline.hue.set_config(HueRotationConfig(profile.hue_rotation.degrees))
            pipeline.hue.set_enabled(profile.hue_rotation.enabled)
        else:
            pipeline.hue.set_config(None)

        if profile.decal is not None:
            pipeline.decal.set_config(DecalConfig(profile.decal.source.to_source(), profile.decal.scale))
            pipeline.decal.set_enabled(profile.decal.enabled)
        else:
            pipeline.decal.set_config(None)

        if profile.overlay is not None:
            settings = profile.overlay
            pipeline.overlay.set_config(OverlayConfig(settings.source.to_source(), settings.position, settings.scale))
            pipeline.overlay.set_enabled(settings.enabled)
        else:
            pipeline.overlay.set_config(None)

        LOGGER.info("applied profile (versions %s)", pipeline.layer_versions())

    def apply_profile_json(self, text: str) -> None:
        """Parse ``text`` fully, then apply it; a parse error changes nothing."""
        self.apply_profile(CustomizationProfile.from_json(text))

    def export_profile(self) -> CustomizationProfile:
        pipeline = self.pipeline
        hue = pipeline.hue.config
        decal = pipeline.decal.config
        overlay = pipeline.overlay.config
        return CustomizationProfile(
            hue_rotation=None
            if hue is None
            else HueRotationSettings(degrees=hue.degrees, enabled=pipeline.hue.is_enabled()),
            decal=None
            if decal is None
            else DecalSettings(
                source=SerializableSvgSource.from_source(decal.source),
                scale=decal.scale,
                enabled=pipeline.decal.is_enabled(),
            ),
            overlay=None
            if overlay is None
            else OverlaySettings(
                source=SerializableSvgSource.from_source(overlay.source),
                position=overlay.position,
                scale=overlay.scale,
                enabled=pipeline.overlay.is_enabled(),
            ),
        )
