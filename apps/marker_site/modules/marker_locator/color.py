import numpy as np
import cv2
from typing import Iterable, Tuple
from .schemas import HueRange, ColorMaskSpec, HUE_MAX, CHANNEL_MAX

def ensure_bgr(image: np.ndarray) -> np.ndarray:
    """
    Return a 3-channel BGR copy of a gray, BGR or BGRA image.
    """
    if image is None or image.size == 0:
        return np.zeros((0, 0, 3), dtype=np.uint8)
    if image.ndim == 2 or image.shape[2] == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 3:
        return image.copy()
    return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

def to_hsv(image: np.ndarray) -> np.ndarray:
    """
    Convert a frame to OpenCV HSV (H: 0..179, S and V: 0..255).
    """
    return cv2.cvtColor(ensure_bgr(image), cv2.COLOR_BGR2HSV)

def _clamp_channel(v: int) -> int:
    return min(max(int(v), 0), CHANNEL_MAX)

def normalize_channel_bounds(min_value: int, max_value: int) -> Tuple[int, int]:
    """
    Clamp a saturation/value interval to 0..255 and swap if reversed.
    """
    lo = _clamp_channel(min_value)
    hi = _clamp_channel(max_value)
    if lo > hi:
        lo, hi = hi, lo
    return lo, hi

def hue_intervals(hue_range: HueRange) -> Iterable[Tuple[int, int]]:
    """
    Split a hue range into plain inclusive intervals.
    A wrapping range yields [0, max_hue] and [min_hue, 179].
    """
    if hue_range.min_hue <= hue_range.max_hue:
        return [(hue_range.min_hue, hue_range.max_hue)]
    return [(0, hue_range.max_hue), (hue_range.min_hue, HUE_MAX)]

def hue_in_range(hue: int, hue_range: HueRange) -> bool:
    return any(lo <= hue <= hi for lo, hi in hue_intervals(hue_range))

def build_hue_mask(
    hsv: np.ndarray,
    hues: Iterable[HueRange],
    sat_min: int,
    sat_max: int,
    val_min: int,
    val_max: int
) -> np.ndarray:
    """
    Binary mask (0/255) of pixels whose hue falls in any of the ranges and whose
    saturation and value fall inside the given bounds.

    Args:
        hsv: uint8 HSV image, 3 channels
        hues: hue ranges, union semantics
        sat_min, sat_max: saturation bounds (clamped and swapped if reversed)
        val_min, val_max: value bounds (clamped and swapped if reversed)

    Returns:
        uint8 mask with the same height and width as hsv
    """
    if hsv is None or hsv.size == 0:
        return np.zeros((0, 0), dtype=np.uint8)
    if hsv.dtype != np.uint8 or hsv.ndim != 3 or hsv.shape[2] != 3:
        raise ValueError("build_hue_mask expects a uint8 HSV image with 3 channels")

    hues = list(hues)
    mask = np.zeros(hsv.shape[:2], dtype=np.uint8)
    if not hues:
        return mask

    sat_min, sat_max = normalize_channel_bounds(sat_min, sat_max)
    val_min, val_max = normalize_channel_bounds(val_min, val_max)

    for hue_range in hues:
        for lo, hi in hue_intervals(hue_range):
            lower = np.array([lo, sat_min, val_min], dtype=np.uint8)
            upper = np.array([hi, sat_max, val_max], dtype=np.uint8)
            part = cv2.inRange(hsv, lower, upper)
            mask = cv2.bitwise_or(mask, part)

    return mask

def build_mask(hsv: np.ndarray, spec: ColorMaskSpec) -> np.ndarray:
    return build_hue_mask(
        hsv,
        spec.hues,
        spec.sat_range.min_value,
        spec.sat_range.max_value,
        spec.val_range.min_value,
        spec.val_range.max_value,
    )
