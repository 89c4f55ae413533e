import math
import cv2
import numpy as np
from typing import List, Tuple
from .schemas import Candidate

def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero (0.5 -> 1, -0.5 -> -1).
    Python's round() would send 2.5 to 2.
    """
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))

def clamp01(v: float) -> float:
    if v < 0.0:
        return 0.0
    if v > 1.0:
        return 1.0
    return v

def safe_div(num: float, den: float) -> float:
    return 0.0 if den <= 0.0 else num / den

def circularity(area: float, perimeter: float) -> float:
    """
    4*pi*A / P^2, clamped to [0, 1]. Zero for degenerate shapes.
    """
    if area <= 0.0 or perimeter <= 0.0:
        return 0.0
    return clamp01((4.0 * math.pi * area) / (perimeter * perimeter))

def fill_ratio(area: float, radius: float) -> float:
    """
    Share of the enclosing circle covered by the region, clamped to [0, 1].
    """
    circle_area = max(1.0, math.pi * radius * radius)
    return clamp01(safe_div(area, circle_area))

def extract_candidates(mask: np.ndarray) -> Tuple[int, List[Candidate]]:
    """
    Find external contours in a binary mask.

    Returns:
        (raw contour count, candidates with positive area)
    """
    if mask is None or mask.size == 0:
        return 0, []

    contours, _ = cv2.findContours(mask.copy(), cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    candidates = []
    for cnt in contours:
        area = float(cv2.contourArea(cnt))
        # Single pixels and one-pixel lines measure zero area
        if area <= 0.0:
            continue

        (cx, cy), radius = cv2.minEnclosingCircle(cnt)
        x, y, w, h = cv2.boundingRect(cnt)

        candidates.append(Candidate(
            contour=cnt.reshape(-1, 2),
            area=area,
            perimeter=float(cv2.arcLength(cnt, True)),
            center=(round_half_away(cx), round_half_away(cy)),
            radius=float(radius),
            box=(x, y, w, h)
        ))

    return len(contours), candidates

def ring_radii(radius: float, inner_percent: int, outer_percent: int) -> Tuple[int, int]:
    """
    Inner and outer pixel radii of the context ring around a candidate.
    The ring always has at least one pixel of thickness.
    """
    inner = max(1, round_half_away(radius * (inner_percent / 100.0)))
    outer = max(inner + 1, round_half_away(radius * (outer_percent / 100.0)))
    return inner, outer

def annulus_mask(shape: Tuple[int, int], center: Tuple[int, int], inner: int, outer: int) -> np.ndarray:
    """
    Filled disc of radius `outer` minus filled disc of radius `inner`, clipped
    to an image of the given (height, width).
    """
    ring = np.zeros(shape[:2], dtype=np.uint8)
    cv2.circle(ring, center, outer, 255, -1)
    cv2.circle(ring, center, inner, 0, -1)
    return ring

def count_foreground(mask: np.ndarray) -> int:
    if mask is None or mask.size == 0:
        return 0
    return int(cv2.countNonZero(mask))

def mask_coverage(mask: np.ndarray) -> float:
    if mask is None or mask.size == 0:
        return 0.0
    return safe_div(float(count_foreground(mask)), float(mask.shape[0] * mask.shape[1]))
