import unittest
import json
import sys
import os

# Add apps to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from tests.utils import green_marker_config
from apps.marker_site.modules.marker_locator.schemas import HueRange
from apps.marker_site.modules.marker_locator.config_codec import (
    MAX_HUE_RANGES, config_from_dict, config_from_json, config_to_dict, default_config
)
from apps.marker_site.modules.marker_locator.active_config import (
    get_active_config, reset_active_config, set_active_config
)
from apps.marker_site.modules.marker_locator.errors import ConfigInvalidError, StatusCode

class TestDefaultConfig(unittest.TestCase):

    def test_default_values(self):
        cfg = default_config()
        self.assertEqual(cfg.center_color.hues, (HueRange(16, 32),))
        self.assertEqual((cfg.center_color.sat_range.min_value, cfg.center_color.sat_range.max_value), (50, 125))
        self.assertEqual(cfg.center_morph.open_iterations, 5)
        self.assertEqual(cfg.center_morph.close_iterations, 3)
        self.assertEqual(cfg.center_morph.dilate_iterations, 1)
        self.assertEqual((cfg.shape.min_area, cfg.shape.max_area), (20, 800))
        self.assertTrue(cfg.context.enabled)
        self.assertEqual((cfg.context.inner_radius_percent, cfg.context.outer_radius_percent), (105, 225))
        self.assertEqual(cfg.context.exclude_color.hues, (HueRange(52, 68), HueRange(24, 48)))
        self.assertEqual(cfg.context.exclude_color.val_range, cfg.context.support_color.val_range)
        self.assertAlmostEqual(cfg.context.min_support_ratio, 0.42)

    def test_default_is_a_fresh_equal_value(self):
        self.assertEqual(default_config(), default_config())

class TestConfigCodec(unittest.TestCase):

    def test_round_trip_through_json(self):
        cfg = green_marker_config(context_enabled=True)
        data = json.loads(json.dumps(config_to_dict(cfg)))
        self.assertEqual(config_from_dict(data), cfg)

        data = json.loads(json.dumps(config_to_dict(default_config())))
        self.assertEqual(config_from_dict(data), default_config())

    def test_missing_keys_keep_base(self):
        cfg = config_from_dict({"shape": {"max_area": 900}})
        self.assertEqual(cfg.shape.max_area, 900)
        self.assertEqual(cfg.shape.min_area, default_config().shape.min_area)
        self.assertEqual(cfg.center_color, default_config().center_color)

        base = green_marker_config()
        cfg = config_from_dict({"context": {"min_support_ratio": 0.3}}, base=base)
        self.assertEqual(cfg.center_color, base.center_color)
        self.assertAlmostEqual(cfg.context.min_support_ratio, 0.3)

        self.assertEqual(config_from_dict({}), default_config())

    def test_wrapping_hue_accepted(self):
        cfg = config_from_dict({"center_color": {"hues": [{"min": 170, "max": 10}]}})
        self.assertTrue(cfg.center_color.hues[0].wraps)

    def test_hue_count_limits(self):
        with self.assertRaises(ConfigInvalidError) as ctx:
            config_from_dict({"center_color": {"hues": []}})
        self.assertEqual(ctx.exception.field, "center_color.hues")

        too_many = [{"min": i, "max": i + 1} for i in range(MAX_HUE_RANGES + 1)]
        with self.assertRaises(ConfigInvalidError):
            config_from_dict({"center_color": {"hues": too_many}})

        # Exclusion may be empty
        cfg = config_from_dict({"context": {"exclude_color": {"hues": []}}})
        self.assertEqual(cfg.context.exclude_color.hues, ())

    def test_hue_out_of_domain(self):
        with self.assertRaises(ConfigInvalidError) as ctx:
            config_from_dict({"context": {"support_color": {"hues": [{"min": 0, "max": 179}, {"min": 10, "max": 200}]}}})
        self.assertEqual(ctx.exception.field, "context.support_color.hues[1]")

    def test_exclude_color_cleared_and_defaulted(self):
        cfg = config_from_dict({"context": {"exclude_color": None}})
        self.assertIsNone(cfg.context.exclude_color)

        base = config_from_dict({"context": {"exclude_color": None}})
        cfg = config_from_dict({"context": {"exclude_color": {"hues": [{"min": 40, "max": 50}]}}}, base=base)
        self.assertEqual(cfg.context.exclude_color.sat_range, base.context.support_color.sat_range)
        self.assertEqual(cfg.context.exclude_color.val_range, base.context.support_color.val_range)

    def test_malformed_input(self):
        with self.assertRaises(ConfigInvalidError) as ctx:
            config_from_dict({"shape": {"min_area": "many"}})
        self.assertEqual(ctx.exception.field, "config")

        with self.assertRaises(ConfigInvalidError) as ctx:
            config_from_dict({"center_color": {"hues": [{"min": 3}]}})
        self.assertEqual(ctx.exception.field, "config")

        with self.assertRaises(ConfigInvalidError) as ctx:
            config_from_dict({"center_color": {"hues": "red"}})
        self.assertEqual(ctx.exception.field, "center_color.hues")

    def test_decoded_config_is_validated(self):
        with self.assertRaises(ConfigInvalidError) as ctx:
            config_from_dict({"context": {"inner_radius_percent": 300}})
        self.assertEqual(ctx.exception.field, "context.radius_percent")

    def test_flags_must_be_booleans(self):
        with self.assertRaises(ConfigInvalidError) as ctx:
            config_from_dict({"context": {"enabled": "false"}})
        self.assertEqual(ctx.exception.field, "context.enabled")

        for key in ("draw_rejected", "draw_labels", "draw_label_background"):
            with self.assertRaises(ConfigInvalidError) as ctx:
                config_from_dict({"debug": {key: 1}})
            self.assertEqual(ctx.exception.field, f"debug.{key}")

        cfg = config_from_dict({"context": {"enabled": False}, "debug": {"draw_rejected": True}})
        self.assertFalse(cfg.context.enabled)
        self.assertTrue(cfg.debug.draw_rejected)

    def test_config_from_json(self):
        base = green_marker_config()
        cfg = config_from_json('{"shape": {"max_area": 1500}}', base=base)
        self.assertEqual(cfg.shape.max_area, 1500)
        self.assertEqual(cfg.center_color, base.center_color)

        for text in ('{"shape": ', 'not json', '[1, 2]', '"text"', 'null'):
            with self.assertRaises(ConfigInvalidError) as ctx:
                config_from_json(text)
            self.assertEqual(ctx.exception.field, "config")
            self.assertEqual(ctx.exception.status, StatusCode.CONFIG_ERROR)

    def test_partial_update_merges_over_active(self):
        set_active_config(green_marker_config())
        try:
            cfg = config_from_dict({"shape": {"max_area": 1500}}, base=get_active_config())
            self.assertEqual(cfg.center_color, green_marker_config().center_color)
            self.assertEqual(cfg.shape.max_area, 1500)
        finally:
            reset_active_config()

class TestActiveConfig(unittest.TestCase):

    def tearDown(self):
        reset_active_config()

    def test_starts_as_default(self):
        reset_active_config()
        self.assertEqual(get_active_config(), default_config())

    def test_set_and_reset(self):
        cfg = green_marker_config()
        self.assertIsNone(set_active_config(cfg))
        self.assertEqual(get_active_config(), cfg)

        self.assertEqual(reset_active_config(), default_config())
        self.assertEqual(get_active_config(), default_config())

    def test_invalid_set_keeps_previous(self):
        cfg = green_marker_config()
        set_active_config(cfg)

        failure = set_active_config(green_marker_config(min_area=100, max_area=10))
        self.assertEqual(failure.field, "shape.max_area")
        self.assertEqual(get_active_config(), cfg)

if __name__ == '__main__':
    unittest.main()
