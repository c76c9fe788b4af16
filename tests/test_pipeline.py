from __future__ import annotations

import unittest

import numpy as np

from iconforge.icon import CacheKey, IconImage
from iconforge.layers import DecalConfig, HueRotationConfig, LayerPipeline, OverlayConfig, OverlayPosition
from iconforge.render.symbols import SvgSource


SQUARE = '<svg width="10" height="10"><rect width="10" height="10" fill="#000"/></svg>'
BLUE_SQUARE = '<svg width="10" height="10"><rect width="10" height="10" fill="#0000ff"/></svg>'


def _solid(size: int, color: tuple[int, int, int, int], scale: float = 1.0) -> IconImage:
    data = np.zeros((size, size, 4), dtype=np.uint8)
    data[:, :] = color
    return IconImage.new_full_content(data, scale)


class LayerPipelineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pipeline = LayerPipeline()
        self.base = _solid(16, (255, 0, 0, 255))

    def test_empty_pipeline_returns_base_pixels(self) -> None:
        out = self.pipeline.render(self.base)
        self.assertTrue(out.same_pixels(self.base))

    def test_composite_cache_hit_returns_same_image(self) -> None:
        self.pipeline.hue.set_config(HueRotationConfig(120))
        first = self.pipeline.render(self.base)
        self.assertIs(self.pipeline.render(self.base), first)
        self.assertEqual(self.pipeline.composite.cached_keys(), [CacheKey.from_icon(self.base)])

    def test_layer_change_misses_composite(self) -> None:
        self.pipeline.hue.set_config(HueRotationConfig(120))
        first = self.pipeline.render(self.base)
        self.pipeline.hue.set_config(HueRotationConfig(240))
        second = self.pipeline.render(self.base)
        self.assertIsNot(second, first)
        self.assertEqual(second.pixel(0, 0), (0, 0, 255, 255))

    def test_scales_are_cached_separately(self) -> None:
        self.pipeline.hue.set_config(HueRotationConfig(120))
        self.pipeline.render(self.base)
        self.pipeline.render(_solid(16, (255, 0, 0, 255), scale=2.0))
        self.assertEqual(len(self.pipeline.hue.cached_keys()), 2)
        self.assertEqual(len(self.pipeline.composite.cached_keys()), 2)

    def test_composite_dependencies_track_every_layer(self) -> None:
        before = self.pipeline.composite_dependencies()
        self.pipeline.overlay.set_config(OverlayConfig(SvgSource.from_svg(SQUARE), OverlayPosition.CENTER, 0.5))
        self.assertNotEqual(self.pipeline.composite_dependencies(), before)
        self.assertEqual(self.pipeline.composite_dependencies().versions, (0, 0, 1))

    def test_invalidate_all_clears_everything(self) -> None:
        self.pipeline.hue.set_config(HueRotationConfig(120))
        self.pipeline.decal.set_config(DecalConfig(SvgSource.from_svg(SQUARE), 0.5))
        first = self.pipeline.render(self.base)
        versions = self.pipeline.layer_versions()

        self.pipeline.invalidate_all()
        self.assertEqual(self.pipeline.hue.cached_keys(), [])
        self.assertEqual(self.pipeline.decal.cached_keys(), [])
        self.assertEqual(self.pipeline.composite.cached_keys(), [])
        self.assertGreater(self.pipeline.layer_versions().hue, versions.hue)

        second = self.pipeline.render(self.base)
        self.assertIsNot(second, first)
        self.assertTrue(second.same_pixels(first))

    def _add_overlay(self) -> None:
        self.pipeline.overlay.set_config(
            OverlayConfig(SvgSource.from_svg(BLUE_SQUARE), OverlayPosition.TOP_LEFT, 0.25)
        )

    def _fresh_render(self) -> IconImage:
        self.pipeline.invalidate_all()
        return self.pipeline.render(self.base)

    def test_overlay_redraws_after_hue_change(self) -> None:
        self._add_overlay()
        self.pipeline.render(self.base)
        self.pipeline.hue.set_config(HueRotationConfig(120))
        updated = self.pipeline.render(self.base)
        self.assertEqual(updated.pixel(15, 15), (0, 255, 0, 255))
        self.assertEqual(updated.pixel(0, 0), (0, 0, 255, 255))
        self.assertTrue(updated.same_pixels(self._fresh_render()))

    def test_overlay_redraws_after_decal_change(self) -> None:
        self._add_overlay()
        self.pipeline.render(self.base)
        self.pipeline.decal.set_config(DecalConfig(SvgSource.from_svg(SQUARE), 0.5))
        updated = self.pipeline.render(self.base)
        self.assertNotEqual(updated.pixel(8, 8), (255, 0, 0, 255))
        self.assertTrue(updated.same_pixels(self._fresh_render()))

    def test_overlay_cache_tracks_upstream_versions(self) -> None:
        self._add_overlay()
        self.pipeline.hue.set_config(HueRotationConfig(120))
        self.pipeline.render(self.base)
        self.pipeline.hue.set_enabled(False)
        self.assertEqual(self.pipeline.render(self.base).pixel(15, 15), (255, 0, 0, 255))

    def test_input_is_never_modified(self) -> None:
        self.pipeline.hue.set_config(HueRotationConfig(120))
        self.pipeline.decal.set_config(DecalConfig(SvgSource.from_svg(SQUARE), 0.5))
        self.pipeline.render(self.base)
        self.assertEqual(self.base.pixel(8, 8), (255, 0, 0, 255))


if __name__ == "__main__":
    unittest.main()
