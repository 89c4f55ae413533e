import cv2
import numpy as np
from typing import List, Tuple
from .schemas import DebugDrawConfig, Detection, DetectionMetrics, RunResult
from .color import ensure_bgr
from .geometry import round_half_away

FONT = cv2.FONT_HERSHEY_SIMPLEX

def build_metric_label(m: DetectionMetrics) -> str:
    """
    e.g. "A rr=0.87 c=0.91 f=0.95" (A = accepted, R = rejected).
    """
    return f"{'A' if m.accepted else 'R'} rr={m.ring_support_ratio:.2f} c={m.circularity:.2f} f={m.center_fill_ratio:.2f}"

def draw_label(image: np.ndarray, text: str, anchor: Tuple[int, int], dbg: DebugDrawConfig) -> None:
    """
    Draw a label near anchor, shifted so it stays inside the image.
    """
    if image is None or image.size == 0 or not text or not dbg.draw_labels:
        return

    (tw, th), baseline = cv2.getTextSize(text, FONT, dbg.font_scale, dbg.line_thickness)
    rows, cols = image.shape[:2]

    x = max(0, anchor[0])
    y = max(th + 1, anchor[1])
    if x + tw + 2 >= cols:
        x = max(0, cols - tw - 2)
    if y >= rows:
        y = max(th + 1, rows - 2)

    if dbg.draw_label_background:
        pad = dbg.label_padding_px
        tl = (max(0, x - pad), max(0, y - th - pad))
        br = (min(cols - 1, x + tw + pad), min(rows - 1, y + baseline + pad))
        cv2.rectangle(image, tl, br, dbg.label_bg_color, -1)

    cv2.putText(image, text, (x, y), FONT, dbg.font_scale, dbg.text_color, dbg.line_thickness, cv2.LINE_AA)

def draw_detections(image: np.ndarray, detections: List[Detection], dbg: DebugDrawConfig) -> np.ndarray:
    """
    Draws boxes, enclosing circles and metric labels on a copy of the image.
    Rejected candidates are only drawn when dbg.draw_rejected is set.
    """
    out = ensure_bgr(image)

    for det in detections:
        accepted = det.metrics.accepted
        if not accepted and not dbg.draw_rejected:
            continue

        stroke = dbg.accepted_color if accepted else dbg.rejected_color
        x, y, w, h = det.box
        cv2.rectangle(out, (x, y), (x + w - 1, y + h - 1), stroke, 2, cv2.LINE_AA)
        cv2.circle(out, det.center, max(2, round_half_away(det.radius)), stroke, 1, cv2.LINE_AA)

        draw_label(out, build_metric_label(det.metrics), (x, max(12, y - 4)), dbg)

    return out

def side_by_side(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    """
    Concatenate two views horizontally, scaling the shorter one up to the taller height.
    """
    if left is None or right is None or left.size == 0 or right.size == 0:
        return np.zeros((0, 0, 3), dtype=np.uint8)

    left = ensure_bgr(left)
    right = ensure_bgr(right)
    if left.shape[0] != right.shape[0]:
        target = max(left.shape[0], right.shape[0])
        left = cv2.resize(left, None, fx=target / left.shape[0], fy=target / left.shape[0], interpolation=cv2.INTER_NEAREST)
        right = cv2.resize(right, None, fx=target / right.shape[0], fy=target / right.shape[0], interpolation=cv2.INTER_NEAREST)
        # Rounding in resize can leave the heights one pixel apart
        target = min(left.shape[0], right.shape[0])
        left, right = left[:target], right[:target]

    return cv2.hconcat([left, right])

def render_debug_views(frame: np.ndarray, result: RunResult, dbg: DebugDrawConfig) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Build the scene overlay, the mask view and their side-by-side composite
    from an existing result. Detection is not re-run.
    """
    overlay = draw_detections(frame, result.detections, dbg)

    mask = result.mask
    if mask is None or mask.size == 0:
        mask = np.zeros(frame.shape[:2], dtype=np.uint8)
    mask_view = draw_detections(mask, result.detections, dbg)

    return overlay, mask_view, side_by_side(overlay, mask_view)

def pack_bgra(image: np.ndarray) -> Tuple[bytes, int, int, int]:
    """
    Pack an image as tightly strided top-down BGRA32.

    Returns:
        (pixels, width, height, stride_bytes)
    """
    if image.ndim == 2:
        bgra = cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    elif image.shape[2] == 3:
        bgra = cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    elif image.shape[2] == 4:
        bgra = image
    else:
        raise ValueError("Unsupported debug image format.")

    bgra = np.ascontiguousarray(bgra)
    h, w = bgra.shape[:2]
    return bgra.tobytes(), w, h, w * 4
