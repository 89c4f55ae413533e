import json
from typing import Any, Dict, List, Optional
from .schemas import (
    ChannelRange, ColorMaskSpec, ContextRingConfig, DebugDrawConfig, DetectionConfig,
    HueRange, MorphologyConfig, ShapeFilterConfig, ValidationFailure, HUE_MAX
)
from .validation import validate_config
from .errors import ConfigInvalidError

API_VERSION = 1
MAX_HUE_RANGES = 8

def default_config() -> DetectionConfig:
    """
    Built-in configuration: pale yellow centers on a bright surround, with
    green and yellow/orange ring pixels ignored.
    """
    support = ColorMaskSpec(
        hues=(HueRange(0, 179),),
        sat_range=ChannelRange(0, 255),
        val_range=ChannelRange(120, 255)
    )
    return DetectionConfig(
        center_color=ColorMaskSpec(
            hues=(HueRange(16, 32),),
            sat_range=ChannelRange(50, 125),
            val_range=ChannelRange(85, 255)
        ),
        center_morph=MorphologyConfig(open_iterations=5, close_iterations=3, dilate_iterations=1),
        shape=ShapeFilterConfig(min_area=20, max_area=800, min_circularity=0.75, min_fill_ratio=0.68),
        context=ContextRingConfig(
            enabled=True,
            inner_radius_percent=105,
            outer_radius_percent=225,
            support_color=support,
            exclude_color=ColorMaskSpec(
                hues=(HueRange(52, 68), HueRange(24, 48)),
                sat_range=support.sat_range,
                val_range=support.val_range
            ),
            min_support_ratio=0.42
        ),
        debug=DebugDrawConfig(
            draw_rejected=False,
            draw_labels=True,
            draw_label_background=True,
            accepted_color=(0, 255, 0),
            rejected_color=(0, 165, 255),
            text_color=(0, 255, 0),
            label_bg_color=(0, 0, 0),
            font_scale=0.45,
            line_thickness=1,
            label_padding_px=2
        )
    )

def _range_to_dict(rng: ChannelRange) -> Dict[str, int]:
    return {"min": rng.min_value, "max": rng.max_value}

def _spec_to_dict(spec: ColorMaskSpec) -> Dict[str, Any]:
    return {
        "hues": [{"min": h.min_hue, "max": h.max_hue} for h in spec.hues],
        "sat": _range_to_dict(spec.sat_range),
        "val": _range_to_dict(spec.val_range),
    }

def config_to_dict(cfg: DetectionConfig) -> Dict[str, Any]:
    ctx = cfg.context
    dbg = cfg.debug
    return {
        "center_color": _spec_to_dict(cfg.center_color),
        "center_morph": {
            "open_iterations": cfg.center_morph.open_iterations,
            "close_iterations": cfg.center_morph.close_iterations,
            "dilate_iterations": cfg.center_morph.dilate_iterations,
        },
        "shape": {
            "min_area": cfg.shape.min_area,
            "max_area": cfg.shape.max_area,
            "min_circularity": cfg.shape.min_circularity,
            "min_fill_ratio": cfg.shape.min_fill_ratio,
        },
        "context": {
            "enabled": ctx.enabled,
            "inner_radius_percent": ctx.inner_radius_percent,
            "outer_radius_percent": ctx.outer_radius_percent,
            "support_color": _spec_to_dict(ctx.support_color),
            "exclude_color": _spec_to_dict(ctx.exclude_color) if ctx.exclude_color is not None else None,
            "min_support_ratio": ctx.min_support_ratio,
        },
        "debug": {
            "draw_rejected": dbg.draw_rejected,
            "draw_labels": dbg.draw_labels,
            "draw_label_background": dbg.draw_label_background,
            "accepted_color": list(dbg.accepted_color),
            "rejected_color": list(dbg.rejected_color),
            "text_color": list(dbg.text_color),
            "label_bg_color": list(dbg.label_bg_color),
            "font_scale": dbg.font_scale,
            "line_thickness": dbg.line_thickness,
            "label_padding_px": dbg.label_padding_px,
        },
    }

def _fail(field: str, message: str):
    raise ConfigInvalidError(ValidationFailure(field, message))

def _hues_from_list(items: List[Any], name: str, min_count: int) -> tuple:
    if not isinstance(items, list):
        _fail(name, f"{name} must be a list.")
    if len(items) < min_count or len(items) > MAX_HUE_RANGES:
        _fail(name, f"{name} count must be in [{min_count}, {MAX_HUE_RANGES}].")
    hues = []
    for i, item in enumerate(items):
        lo, hi = int(item["min"]), int(item["max"])
        # Out-of-domain hues are rejected here rather than silently clamped
        if not (0 <= lo <= HUE_MAX and 0 <= hi <= HUE_MAX):
            _fail(f"{name}[{i}]", f"{name}[{i}] must be in [0,179].")
        hues.append(HueRange(lo, hi))
    return tuple(hues)

def _range_from_dict(data: Optional[Dict[str, Any]], fallback: ChannelRange) -> ChannelRange:
    if data is None:
        return fallback
    return ChannelRange(int(data.get("min", fallback.min_value)), int(data.get("max", fallback.max_value)))

def _spec_from_dict(data: Dict[str, Any], fallback: ColorMaskSpec, name: str, min_hues: int) -> ColorMaskSpec:
    hues = fallback.hues
    if "hues" in data:
        hues = _hues_from_list(data["hues"], f"{name}.hues", min_hues)
    return ColorMaskSpec(
        hues=hues,
        sat_range=_range_from_dict(data.get("sat"), fallback.sat_range),
        val_range=_range_from_dict(data.get("val"), fallback.val_range)
    )

def _flag(data: Dict[str, Any], key: str, fallback: bool, name: str) -> bool:
    if key not in data:
        return fallback
    value = data[key]
    # JSON true/false only
    if not isinstance(value, bool):
        _fail(name, f"{name} must be true or false.")
    return value

def _color(value: Any, fallback: tuple) -> tuple:
    if value is None:
        return fallback
    return tuple(int(c) for c in value)[:3]

def config_from_dict(data: Dict[str, Any], base: Optional[DetectionConfig] = None) -> DetectionConfig:
    """
    Build a validated DetectionConfig from its JSON form.

    Missing keys keep the value from `base` (the default config when not
    given). Raises ConfigInvalidError naming the first bad field.
    """
    base = base or default_config()
    data = data or {}

    try:
        center = base.center_color
        if "center_color" in data:
            center = _spec_from_dict(data["center_color"], base.center_color, "center_color", 1)

        m = data.get("center_morph", {})
        morph = MorphologyConfig(
            open_iterations=int(m.get("open_iterations", base.center_morph.open_iterations)),
            close_iterations=int(m.get("close_iterations", base.center_morph.close_iterations)),
            dilate_iterations=int(m.get("dilate_iterations", base.center_morph.dilate_iterations))
        )

        s = data.get("shape", {})
        shape = ShapeFilterConfig(
            min_area=int(s.get("min_area", base.shape.min_area)),
            max_area=int(s.get("max_area", base.shape.max_area)),
            min_circularity=float(s.get("min_circularity", base.shape.min_circularity)),
            min_fill_ratio=float(s.get("min_fill_ratio", base.shape.min_fill_ratio))
        )

        c = data.get("context", {})
        support = base.context.support_color
        if "support_color" in c:
            support = _spec_from_dict(c["support_color"], support, "context.support_color", 1)

        exclude = base.context.exclude_color
        if "exclude_color" in c:
            if c["exclude_color"] is None:
                exclude = None
            else:
                # Exclusion sat/val default to the support bounds
                fallback = exclude or ColorMaskSpec((), support.sat_range, support.val_range)
                exclude = _spec_from_dict(c["exclude_color"], fallback, "context.exclude_color", 0)

        context = ContextRingConfig(
            enabled=_flag(c, "enabled", base.context.enabled, "context.enabled"),
            inner_radius_percent=int(c.get("inner_radius_percent", base.context.inner_radius_percent)),
            outer_radius_percent=int(c.get("outer_radius_percent", base.context.outer_radius_percent)),
            support_color=support,
            exclude_color=exclude,
            min_support_ratio=float(c.get("min_support_ratio", base.context.min_support_ratio))
        )

        d = data.get("debug", {})
        bd = base.debug
        debug = DebugDrawConfig(
            draw_rejected=_flag(d, "draw_rejected", bd.draw_rejected, "debug.draw_rejected"),
            draw_labels=_flag(d, "draw_labels", bd.draw_labels, "debug.draw_labels"),
            draw_label_background=_flag(d, "draw_label_background", bd.draw_label_background, "debug.draw_label_background"),
            accepted_color=_color(d.get("accepted_color"), bd.accepted_color),
            rejected_color=_color(d.get("rejected_color"), bd.rejected_color),
            text_color=_color(d.get("text_color"), bd.text_color),
            label_bg_color=_color(d.get("label_bg_color"), bd.label_bg_color),
            font_scale=float(d.get("font_scale", bd.font_scale)),
            line_thickness=int(d.get("line_thickness", bd.line_thickness)),
            label_padding_px=int(d.get("label_padding_px", bd.label_padding_px))
        )
    except ConfigInvalidError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ConfigInvalidError(ValidationFailure("config", f"Malformed config: {e}")) from e

    cfg = DetectionConfig(center_color=center, center_morph=morph, shape=shape, context=context, debug=debug)
    failure = validate_config(cfg)
    if failure is not None:
        raise ConfigInvalidError(failure)
    return cfg

def config_from_json(text: str, base: Optional[DetectionConfig] = None) -> DetectionConfig:
    """
    config_from_dict() for a raw JSON document, e.g. a form field.
    Unparseable JSON or a non-object payload fails on field "config".
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ConfigInvalidError(ValidationFailure("config", f"Malformed config: {e}")) from e
    if not isinstance(data, dict):
        raise ConfigInvalidError(ValidationFailure("config", "Malformed config: expected a JSON object."))
    return config_from_dict(data, base=base)
