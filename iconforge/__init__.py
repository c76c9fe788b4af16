from iconforge.customizer import Configurable, IconCustomizer
from iconforge.icon import CacheKey, IconImage, IconSet, RectPx, SizePx
from iconforge.layers import (
    DecalConfig,
    DominantColor,
    HueRotationConfig,
    Layer,
    LayerPipeline,
    LayerVersions,
    OverlayConfig,
    OverlayPosition,
    RenderContext,
)
from iconforge.profile import (
    CustomizationProfile,
    DecalSettings,
    HueRotationSettings,
    OverlaySettings,
    ProfileError,
    SerializableSvgSource,
)
from iconforge.render.symbols import SvgSource
from iconforge.settings import RenderSettings

__all__ = [
    "CacheKey",
    "Configurable",
    "CustomizationProfile",
    "DecalConfig",
    "DecalSettings",
    "DominantColor",
    "HueRotationConfig",
    "HueRotationSettings",
    "IconCustomizer",
    "IconImage",
    "IconSet",
    "Layer",
    "LayerPipeline",
    "LayerVersions",
    "OverlayConfig",
    "OverlayPosition",
    "OverlaySettings",
    "ProfileError",
    "RectPx",
    "RenderContext",
    "RenderSettings",
    "SerializableSvgSource",
    "SizePx",
    "SvgSource",
]
