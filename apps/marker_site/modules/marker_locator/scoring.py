import cv2
import numpy as np
from typing import Optional, Tuple
from .schemas import Candidate, ContextRingConfig, DetectionMetrics, ShapeFilterConfig
from .geometry import annulus_mask, circularity, clamp01, count_foreground, fill_ratio, ring_radii, safe_div

# Score weights
CIRCULARITY_WEIGHT = 0.55
FILL_WEIGHT = 0.45
SHAPE_WEIGHT = 0.60
CONTEXT_WEIGHT = 0.40

def ring_support_ratio(
    support_mask: np.ndarray,
    exclude_mask: Optional[np.ndarray],
    center: Tuple[int, int],
    radius: float,
    inner_percent: int,
    outer_percent: int
) -> float:
    """
    Fraction of the usable ring around a candidate covered by the support color.

    Pixels matching the exclusion mask are dropped from the ring before
    counting. An empty usable ring gives 0.
    """
    inner, outer = ring_radii(radius, inner_percent, outer_percent)
    ring = annulus_mask(support_mask.shape, center, inner, outer)

    valid_ring = ring
    if exclude_mask is not None:
        excluded_in_ring = cv2.bitwise_and(ring, exclude_mask)
        valid_ring = cv2.bitwise_xor(ring, excluded_in_ring)

    support_in_ring = cv2.bitwise_and(support_mask, valid_ring)

    valid_px = float(count_foreground(valid_ring))
    support_px = float(count_foreground(support_in_ring))
    return clamp01(safe_div(support_px, valid_px))

def composite_score(circ: float, fill: float, ring_ratio: float, context_enabled: bool) -> float:
    shape_score = CIRCULARITY_WEIGHT * circ + FILL_WEIGHT * fill
    if context_enabled:
        return clamp01(SHAPE_WEIGHT * shape_score + CONTEXT_WEIGHT * ring_ratio)
    return clamp01(shape_score)

def score_candidate(
    candidate: Candidate,
    shape: ShapeFilterConfig,
    context: ContextRingConfig,
    support_mask: Optional[np.ndarray] = None,
    exclude_mask: Optional[np.ndarray] = None
) -> DetectionMetrics:
    """
    Measure a candidate and decide whether it is accepted.

    Args:
        candidate: extracted region
        shape: area, circularity and fill thresholds
        context: ring settings; when disabled the ring always passes
        support_mask: support color mask, required when context is enabled
        exclude_mask: optional pixels to remove from the ring

    Returns:
        DetectionMetrics with accepted = AND of the four pass flags
    """
    m = DetectionMetrics()
    m.area = candidate.area
    m.circularity = circularity(candidate.area, candidate.perimeter)
    m.passes_area = shape.min_area <= candidate.area <= shape.max_area
    m.passes_circularity = m.circularity >= shape.min_circularity

    m.center_fill_ratio = fill_ratio(candidate.area, candidate.radius)
    m.passes_center_fill = m.center_fill_ratio >= shape.min_fill_ratio

    if context.enabled:
        if support_mask is None:
            raise ValueError("support_mask is required when the context ring is enabled")
        m.ring_support_ratio = ring_support_ratio(
            support_mask,
            exclude_mask,
            candidate.center,
            candidate.radius,
            context.inner_radius_percent,
            context.outer_radius_percent
        )
        m.passes_context = m.ring_support_ratio >= context.min_support_ratio
    else:
        m.ring_support_ratio = 1.0
        m.passes_context = True

    m.score = composite_score(m.circularity, m.center_fill_ratio, m.ring_support_ratio, context.enabled)
    m.accepted = m.passes_area and m.passes_circularity and m.passes_center_fill and m.passes_context
    return m
