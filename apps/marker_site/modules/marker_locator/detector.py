import cv2
import logging
import numpy as np
import time
from typing import List, Optional
from .schemas import DetectionConfig, Detection, RunResult
from .color import to_hsv, build_mask
from .morphology import apply_morphology
from .geometry import extract_candidates, mask_coverage, safe_div
from .scoring import score_candidate
from .errors import InvalidInputError, RuntimeFailureError
from .frame import load_frame
from .validation import ensure_valid
from .config_codec import default_config

logger = logging.getLogger(__name__)

def sort_detections(detections: List[Detection]) -> List[Detection]:
    """
    Accepted first, then by descending score. The sort is stable, so equal
    scores keep contour extraction order.
    """
    return sorted(detections, key=lambda d: (not d.metrics.accepted, -d.metrics.score))

def aggregate(detections: List[Detection], raw_candidate_count: int, mask: np.ndarray) -> RunResult:
    """
    Order detections and compute the run summary.
    """
    result = RunResult(
        detections=sort_detections(detections),
        raw_candidate_count=raw_candidate_count,
        scene_mask_coverage=mask_coverage(mask),
        mask=mask
    )

    for det in result.detections:
        if not det.metrics.accepted:
            continue
        result.accepted_centers.append(det.center)
        result.accepted_boxes.append(det.box)
        result.accepted_count += 1
        result.score = max(result.score, det.metrics.score)

    result.accepted_ratio = safe_div(float(result.accepted_count), float(max(1, raw_candidate_count)))
    return result

def _is_empty(frame: Optional[np.ndarray]) -> bool:
    return frame is None or not hasattr(frame, "size") or frame.size == 0

def find_markers(frame: np.ndarray, config: DetectionConfig) -> RunResult:
    """
    Locate color markers in a single frame.

    The configuration is trusted; validate it before calling. An empty frame
    raises InvalidInputError before any processing, anything failing inside the
    pipeline is raised as RuntimeFailureError.

    Args:
        frame: gray, BGR or BGRA image
        config: validated detection configuration

    Returns:
        RunResult with detections ordered accepted-first, score-descending
    """
    if _is_empty(frame):
        raise InvalidInputError("Find received an empty frame.")

    start_time = time.time()

    try:
        hsv = to_hsv(frame)

        center_mask = build_mask(hsv, config.center_color)
        center_mask = apply_morphology(center_mask, config.center_morph)

        support_mask = None
        exclude_mask = None
        context = config.context
        if context.enabled:
            support_mask = build_mask(hsv, context.support_color)
            if context.exclude_color is not None and context.exclude_color.hues:
                exclude_mask = build_mask(hsv, context.exclude_color)

        raw_count, candidates = extract_candidates(center_mask)

        detections = []
        for cand in candidates:
            metrics = score_candidate(cand, config.shape, context, support_mask, exclude_mask)
            detections.append(Detection(
                box=cand.box,
                center=cand.center,
                radius=cand.radius,
                contour=cand.contour,
                metrics=metrics
            ))

        result = aggregate(detections, raw_count, center_mask)
    except (cv2.error, ValueError, TypeError) as e:
        raise RuntimeFailureError(str(e) or "Runtime error.") from e

    result.processing_time_ms = (time.time() - start_time) * 1000
    logger.debug(
        "find_markers: %d raw, %d scored, %d accepted, coverage=%.4f, score=%.3f, %.1fms",
        result.raw_candidate_count, len(result.detections), result.accepted_count,
        result.scene_mask_coverage, result.score, result.processing_time_ms
    )
    return result

class MarkerFinder:
    """
    Holds one configuration snapshot and runs detection against it.
    Defaults to the built-in config; an explicit config is validated up front
    and ConfigInvalidError is raised if it is unusable.
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = ensure_valid(config) if config is not None else default_config()

    def find(self, frame: np.ndarray) -> RunResult:
        return find_markers(frame, self.config)

    def load_and_find(self, path: str) -> RunResult:
        return self.find(load_frame(path))
