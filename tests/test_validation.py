import unittest
import sys
import os
from dataclasses import replace

# Add apps to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from tests.utils import green_marker_config
from apps.marker_site.modules.marker_locator.schemas import (
    ChannelRange, ColorMaskSpec, DetectionConfig, HueRange, MorphologyConfig, ShapeFilterConfig
)
from apps.marker_site.modules.marker_locator.validation import ensure_valid, is_valid, validate_config
from apps.marker_site.modules.marker_locator.config_codec import default_config
from apps.marker_site.modules.marker_locator.errors import ConfigInvalidError, StatusCode

def with_shape(cfg, **kwargs):
    return replace(cfg, shape=replace(cfg.shape, **kwargs))

def with_context(cfg, **kwargs):
    return replace(cfg, context=replace(cfg.context, **kwargs))

class TestValidation(unittest.TestCase):

    def test_default_config_is_valid(self):
        self.assertIsNone(validate_config(default_config()))
        self.assertTrue(is_valid(default_config()))
        self.assertTrue(is_valid(green_marker_config(context_enabled=True)))

    def test_empty_center_hues(self):
        cfg = replace(default_config(), center_color=ColorMaskSpec(hues=()))
        failure = validate_config(cfg)
        self.assertEqual(failure.field, "center_color.hues")

    def test_bare_config_has_no_center_hues(self):
        self.assertFalse(is_valid(DetectionConfig()))

    def test_center_channel_range(self):
        bad = ColorMaskSpec(hues=(HueRange(10, 20),), sat_range=ChannelRange(200, 100))
        failure = validate_config(replace(default_config(), center_color=bad))
        self.assertEqual(failure.field, "center_color.sat_range")

        bad = ColorMaskSpec(hues=(HueRange(10, 20),), val_range=ChannelRange(0, 300))
        failure = validate_config(replace(default_config(), center_color=bad))
        self.assertEqual(failure.field, "center_color.val_range")

    def test_area_rules(self):
        failure = validate_config(with_shape(default_config(), min_area=0))
        self.assertEqual(failure.field, "shape.min_area")

        failure = validate_config(with_shape(default_config(), min_area=500, max_area=100))
        self.assertEqual(failure.field, "shape.max_area")
        self.assertEqual(failure.message, "shape.max_area must be >= shape.min_area.")

        self.assertTrue(is_valid(with_shape(default_config(), min_area=100, max_area=100)))

    def test_unit_interval_thresholds(self):
        self.assertEqual(validate_config(with_shape(default_config(), min_circularity=1.2)).field,
                         "shape.min_circularity")
        self.assertEqual(validate_config(with_shape(default_config(), min_fill_ratio=-0.1)).field,
                         "shape.min_fill_ratio")
        self.assertTrue(is_valid(with_shape(default_config(), min_circularity=0.0, min_fill_ratio=1.0)))

    def test_negative_morphology(self):
        cfg = replace(default_config(), center_morph=MorphologyConfig(close_iterations=-1))
        self.assertEqual(validate_config(cfg).field, "center_morph.close_iterations")

    def test_ring_percents(self):
        failure = validate_config(with_context(default_config(), inner_radius_percent=120, outer_radius_percent=120))
        self.assertEqual(failure.field, "context.radius_percent")
        self.assertEqual(failure.message, "context ring radius percents must satisfy: 1 <= inner < outer.")

        failure = validate_config(with_context(default_config(), inner_radius_percent=0))
        self.assertEqual(failure.field, "context.radius_percent")

    def test_support_ratio_and_ring_colors(self):
        self.assertEqual(validate_config(with_context(default_config(), min_support_ratio=1.5)).field,
                         "context.min_support_ratio")

        bad_support = ColorMaskSpec(hues=(HueRange(),), val_range=ChannelRange(255, 0))
        self.assertEqual(validate_config(with_context(default_config(), support_color=bad_support)).field,
                         "context.support_color.val_range")

        bad_exclude = ColorMaskSpec(hues=(HueRange(),), sat_range=ChannelRange(-1, 255))
        self.assertEqual(validate_config(with_context(default_config(), exclude_color=bad_exclude)).field,
                         "context.exclude_color.sat_range")

    def test_disabled_context_skips_ring_rules(self):
        cfg = with_context(default_config(), enabled=False, inner_radius_percent=300,
                           outer_radius_percent=10, min_support_ratio=7.0)
        self.assertIsNone(validate_config(cfg))

    def test_first_failure_wins(self):
        cfg = replace(
            default_config(),
            center_color=ColorMaskSpec(hues=()),
            shape=ShapeFilterConfig(min_area=0, max_area=-1)
        )
        self.assertEqual(validate_config(cfg).field, "center_color.hues")

        cfg = with_shape(default_config(), min_area=50, max_area=10, min_circularity=3.0)
        self.assertEqual(validate_config(cfg).field, "shape.max_area")

    def test_ensure_valid(self):
        cfg = default_config()
        self.assertIs(ensure_valid(cfg), cfg)

        with self.assertRaises(ConfigInvalidError) as ctx:
            ensure_valid(with_shape(cfg, max_area=1))
        self.assertEqual(ctx.exception.field, "shape.max_area")
        self.assertEqual(ctx.exception.status, StatusCode.CONFIG_ERROR)
        self.assertIsInstance(ctx.exception, ValueError)

if __name__ == '__main__':
    unittest.main()
