from typing import Optional
from .schemas import ChannelRange, DetectionConfig, ValidationFailure, CHANNEL_MAX
from .errors import ConfigInvalidError

def _check_channel_range(rng: ChannelRange, name: str) -> Optional[ValidationFailure]:
    if not (0 <= rng.min_value <= CHANNEL_MAX and 0 <= rng.max_value <= CHANNEL_MAX):
        return ValidationFailure(name, f"{name} must be within [0,255].")
    if rng.min_value > rng.max_value:
        return ValidationFailure(name, f"{name} must satisfy min_value <= max_value.")
    return None

def _check_unit_interval(value: float, name: str) -> Optional[ValidationFailure]:
    if value < 0.0 or value > 1.0:
        return ValidationFailure(name, f"{name} must be in [0,1].")
    return None

def validate_config(cfg: DetectionConfig) -> Optional[ValidationFailure]:
    """
    Check a detection config for internal consistency.

    Rules run in a fixed order and the first failure is returned, so callers
    always see the same reason for the same config.

    Returns:
        None when the config is usable, otherwise the first ValidationFailure
    """
    if not cfg.center_color.hues:
        return ValidationFailure("center_color.hues", "center_color.hues is empty.")

    failure = (_check_channel_range(cfg.center_color.sat_range, "center_color.sat_range")
               or _check_channel_range(cfg.center_color.val_range, "center_color.val_range"))
    if failure:
        return failure

    shape = cfg.shape
    if shape.min_area < 1:
        return ValidationFailure("shape.min_area", "shape.min_area must be >= 1.")
    if shape.max_area < shape.min_area:
        return ValidationFailure("shape.max_area", "shape.max_area must be >= shape.min_area.")

    failure = (_check_unit_interval(shape.min_circularity, "shape.min_circularity")
               or _check_unit_interval(shape.min_fill_ratio, "shape.min_fill_ratio"))
    if failure:
        return failure

    morph = cfg.center_morph
    for name in ("open_iterations", "close_iterations", "dilate_iterations"):
        if getattr(morph, name) < 0:
            return ValidationFailure(f"center_morph.{name}", f"center_morph.{name} must be >= 0.")

    ctx = cfg.context
    if ctx.enabled:
        if ctx.inner_radius_percent < 1 or ctx.outer_radius_percent <= ctx.inner_radius_percent:
            return ValidationFailure(
                "context.radius_percent",
                "context ring radius percents must satisfy: 1 <= inner < outer."
            )
        failure = _check_unit_interval(ctx.min_support_ratio, "context.min_support_ratio")
        if failure:
            return failure

        failure = (_check_channel_range(ctx.support_color.sat_range, "context.support_color.sat_range")
                   or _check_channel_range(ctx.support_color.val_range, "context.support_color.val_range"))
        if failure:
            return failure

        if ctx.exclude_color is not None:
            failure = (_check_channel_range(ctx.exclude_color.sat_range, "context.exclude_color.sat_range")
                       or _check_channel_range(ctx.exclude_color.val_range, "context.exclude_color.val_range"))
            if failure:
                return failure

    return None

def is_valid(cfg: DetectionConfig) -> bool:
    return validate_config(cfg) is None

def ensure_valid(cfg: DetectionConfig) -> DetectionConfig:
    failure = validate_config(cfg)
    if failure is not None:
        raise ConfigInvalidError(failure)
    return cfg
