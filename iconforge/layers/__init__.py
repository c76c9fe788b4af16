from iconforge.layers.base import CompositeLayer, DependencyVersion, Layer, LayerEffect, LayerVersions
from iconforge.layers.context import DominantColor, PropertyKind, RenderContext
from iconforge.layers.decal import DecalConfig, darken_color
from iconforge.layers.hue_rotation import HueRotationConfig, apply_hue_rotation, sample_dominant_color
from iconforge.layers.overlay import OverlayConfig, OverlayPosition
from iconforge.layers.pipeline import LayerPipeline

__all__ = [
    "CompositeLayer",
    "DecalConfig",
    "DependencyVersion",
    "DominantColor",
    "HueRotationConfig",
    "Layer",
    "LayerEffect",
    "LayerPipeline",
    "LayerVersions",
    "OverlayConfig",
    "OverlayPosition",
    "PropertyKind",
    "RenderContext",
    "apply_hue_rotation",
    "darken_color",
    "sample_dominant_color",
]
