from __future__ import annotations

import unittest

import numpy as np

from iconforge.icon import CacheKey, IconImage
from iconforge.layers.base import CompositeLayer, DependencyVersion, Layer, LayerVersions
from iconforge.layers.context import DominantColor, RenderContext
from iconforge.layers.decal import DecalConfig
from iconforge.layers.hue_rotation import HueRotationConfig
from iconforge.layers.overlay import OverlayConfig, OverlayPosition
from iconforge.render.symbols import SvgSource


def _solid(size: int, color: tuple[int, int, int, int]) -> IconImage:
    data = np.zeros((size, size, 4), dtype=np.uint8)
    data[:, :] = color
    return IconImage.new_full_content(data, 1.0)


class RenderContextTests(unittest.TestCase):
    def test_set_get_has(self) -> None:
        ctx = RenderContext(image=_solid(2, (0, 0, 0, 255)))
        self.assertFalse(ctx.has(DominantColor))
        self.assertIsNone(ctx.get(DominantColor))
        ctx.set(DominantColor(1, 2, 3, 4))
        self.assertTrue(ctx.has(DominantColor))
        self.assertEqual(ctx.get(DominantColor), DominantColor(1, 2, 3, 4))

    def test_set_overwrites(self) -> None:
        ctx = RenderContext(image=_solid(2, (0, 0, 0, 255)))
        ctx.set(DominantColor(1, 2, 3, 4))
        ctx.set(DominantColor(9, 9, 9, 9))
        self.assertEqual(ctx.get(DominantColor).as_tuple(), (9, 9, 9, 9))

    def test_fresh_contexts_share_nothing(self) -> None:
        first = RenderContext(image=_solid(2, (0, 0, 0, 255)))
        first.set(DominantColor(1, 2, 3, 4))
        second = RenderContext(image=_solid(2, (0, 0, 0, 255)))
        self.assertFalse(second.has(DominantColor))


class DependencyVersionTests(unittest.TestCase):
    def test_equality_is_by_upstream_versions(self) -> None:
        self.assertEqual(DependencyVersion.NONE, DependencyVersion())
        self.assertEqual(DependencyVersion.from_version(3), DependencyVersion.combine([3]))
        self.assertNotEqual(DependencyVersion.from_version(3), DependencyVersion.NONE)

    def test_combined_versions_do_not_collide(self) -> None:
        self.assertNotEqual(DependencyVersion.combine((1, 2, 0)), DependencyVersion.combine((2, 1, 0)))

    def test_decal_depends_on_hue_only(self) -> None:
        self.assertEqual(
            DecalConfig.dependencies(LayerVersions(hue=5, decal=7, overlay=9)),
            DependencyVersion.from_version(5),
        )
        self.assertEqual(HueRotationConfig.dependencies(LayerVersions(1, 2, 3)), DependencyVersion.NONE)

    def test_overlay_depends_on_everything_beneath_it(self) -> None:
        self.assertEqual(
            OverlayConfig.dependencies(LayerVersions(hue=5, decal=7, overlay=9)),
            DependencyVersion.combine((5, 7)),
        )


class LayerStateTests(unittest.TestCase):
    def test_new_layer_is_inactive(self) -> None:
        layer: Layer[HueRotationConfig] = Layer(name="hue")
        self.assertEqual(layer.version, 0)
        self.assertFalse(layer.has_config())
        self.assertTrue(layer.is_enabled())
        self.assertFalse(layer.is_active())

    def test_set_config_bumps_version_once_per_change(self) -> None:
        layer: Layer[HueRotationConfig] = Layer(name="hue")
        self.assertTrue(layer.set_config(HueRotationConfig(90)))
        self.assertEqual(layer.version, 1)
        self.assertFalse(layer.set_config(HueRotationConfig(90.0004)))
        self.assertEqual(layer.version, 1)
        self.assertTrue(layer.set_config(HueRotationConfig(91)))
        self.assertEqual(layer.version, 2)
        self.assertTrue(layer.set_config(None))
        self.assertFalse(layer.set_config(None))
        self.assertEqual(layer.version, 3)

    def test_hue_degrees_wrap(self) -> None:
        self.assertEqual(HueRotationConfig(450).degrees, 90.0)
        self.assertEqual(HueRotationConfig(-90).degrees, 270.0)
        self.assertFalse(HueRotationConfig(360).differs_from(HueRotationConfig(0)))

    def test_non_finite_settings_are_rejected(self) -> None:
        for bad in (float("nan"), float("inf")):
            with self.subTest(value=bad):
                with self.assertRaises(ValueError):
                    HueRotationConfig(bad)
                with self.assertRaises(ValueError):
                    DecalConfig(SvgSource.from_svg("<svg/>"), bad)
                with self.assertRaises(ValueError):
                    OverlayConfig(SvgSource.from_svg("<svg/>"), OverlayPosition.CENTER, bad)

    def test_toggle_keeps_config(self) -> None:
        layer: Layer[HueRotationConfig] = Layer(name="hue")
        layer.set_config(HueRotationConfig(30))
        self.assertTrue(layer.set_enabled(False))
        self.assertFalse(layer.set_enabled(False))
        self.assertFalse(layer.is_active())
        self.assertEqual(layer.config, HueRotationConfig(30))
        self.assertTrue(layer.set_enabled(True))
        self.assertTrue(layer.is_active())
        self.assertEqual(layer.version, 3)

    def test_version_wraps_around(self) -> None:
        layer: Layer[HueRotationConfig] = Layer(name="hue", _version=2**64 - 1)
        layer.set_config(HueRotationConfig(10))
        self.assertEqual(layer.version, 0)


class LayerCacheTests(unittest.TestCase):
    def setUp(self) -> None:
        self.image = _solid(4, (255, 0, 0, 255))
        self.key = CacheKey.from_icon(self.image)

    def test_lookup_requires_matching_dependencies(self) -> None:
        layer: Layer[DecalConfig] = Layer(name="decal")
        layer.store(self.key, self.image, DependencyVersion.from_version(1))
        self.assertIs(layer.get_cached(self.key, DependencyVersion.from_version(1)), self.image)
        self.assertIsNone(layer.get_cached(self.key, DependencyVersion.from_version(2)))
        self.assertIsNone(layer.get_cached(CacheKey.new(4, 4, 2.0), DependencyVersion.from_version(1)))

    def test_changes_clear_the_cache(self) -> None:
        layer: Layer[HueRotationConfig] = Layer(name="hue")
        layer.set_config(HueRotationConfig(10))
        layer.store(self.key, self.image, DependencyVersion.NONE)
        self.assertEqual(layer.cached_keys(), [self.key])
        layer.set_enabled(False)
        self.assertEqual(layer.cached_keys(), [])

    def test_apply_stores_then_hits_and_re_emits(self) -> None:
        layer: Layer[HueRotationConfig] = Layer(name="hue")
        layer.set_config(HueRotationConfig(120))
        versions = LayerVersions(layer.version, 0, 0)

        first = RenderContext(image=self.image)
        layer.apply(first, self.key, versions)
        self.assertEqual(first.image.pixel(0, 0), (0, 255, 0, 255))

        second = RenderContext(image=self.image)
        with self.assertLogs("iconforge.layers.base", level="DEBUG") as logs:
            layer.apply(second, self.key, versions)
        self.assertIs(second.image, first.image)
        self.assertTrue(any("cache hit" in line for line in logs.output))
        self.assertEqual(second.get(DominantColor), DominantColor(0, 255, 0, 255))

    def test_inactive_layer_passes_through(self) -> None:
        layer: Layer[HueRotationConfig] = Layer(name="hue")
        ctx = RenderContext(image=self.image)
        layer.apply(ctx, self.key, LayerVersions(0, 0, 0))
        self.assertIs(ctx.image, self.image)
        self.assertFalse(ctx.has(DominantColor))

        layer.set_config(HueRotationConfig(120))
        layer.set_enabled(False)
        layer.apply(ctx, self.key, LayerVersions(layer.version, 0, 0))
        self.assertIs(ctx.image, self.image)
        self.assertEqual(layer.cached_keys(), [])


class CompositeLayerTests(unittest.TestCase):
    def test_invalidate_bumps_and_clears(self) -> None:
        composite = CompositeLayer()
        image = _solid(2, (1, 2, 3, 255))
        key = CacheKey.from_icon(image)
        deps = DependencyVersion.combine((0, 0, 0))
        composite.store(key, image, deps)
        self.assertIs(composite.get_cached(key, deps), image)
        composite.invalidate()
        self.assertEqual(composite.version, 1)
        self.assertIsNone(composite.get_cached(key, deps))


if __name__ == "__main__":
    unittest.main()
