from dataclasses import dataclass, field
from typing import List, Tuple, Optional
import numpy as np

HUE_MAX = 179
CHANNEL_MAX = 255

def _clamp_hue(h: int) -> int:
    if h < 0:
        return 0
    if h > HUE_MAX:
        return HUE_MAX
    return h

@dataclass(frozen=True)
class HueRange:
    """
    Hue interval over OpenCV's circular hue domain 0..179.
    min_hue > max_hue wraps around: [0, max_hue] U [min_hue, 179].
    """
    min_hue: int = 0
    max_hue: int = HUE_MAX

    def __post_init__(self):
        object.__setattr__(self, 'min_hue', _clamp_hue(int(self.min_hue)))
        object.__setattr__(self, 'max_hue', _clamp_hue(int(self.max_hue)))

    @property
    def wraps(self) -> bool:
        return self.min_hue > self.max_hue

@dataclass(frozen=True)
class ChannelRange:
    min_value: int = 0
    max_value: int = CHANNEL_MAX

@dataclass(frozen=True)
class ColorMaskSpec:
    hues: Tuple[HueRange, ...] = ()
    sat_range: ChannelRange = ChannelRange()
    val_range: ChannelRange = ChannelRange()

    def __post_init__(self):
        # Lists are accepted for convenience but stored as a tuple
        object.__setattr__(self, 'hues', tuple(self.hues))

@dataclass(frozen=True)
class MorphologyConfig:
    open_iterations: int = 0
    close_iterations: int = 0
    dilate_iterations: int = 0

@dataclass(frozen=True)
class ShapeFilterConfig:
    min_area: int = 10
    max_area: int = 5000
    min_circularity: float = 0.65
    min_fill_ratio: float = 0.40

@dataclass(frozen=True)
class ContextRingConfig:
    enabled: bool = False
    # Ring bounds as a percentage of the candidate's enclosing radius
    inner_radius_percent: int = 110
    outer_radius_percent: int = 220
    support_color: ColorMaskSpec = ColorMaskSpec(hues=(HueRange(0, HUE_MAX),))
    exclude_color: Optional[ColorMaskSpec] = None
    min_support_ratio: float = 0.20

@dataclass(frozen=True)
class DebugDrawConfig:
    draw_rejected: bool = False
    draw_labels: bool = True
    draw_label_background: bool = True
    # BGR
    accepted_color: Tuple[int, int, int] = (0, 255, 0)
    rejected_color: Tuple[int, int, int] = (0, 0, 255)
    text_color: Tuple[int, int, int] = (0, 255, 0)
    label_bg_color: Tuple[int, int, int] = (0, 0, 0)
    font_scale: float = 0.45
    line_thickness: int = 1
    label_padding_px: int = 2

@dataclass(frozen=True)
class DetectionConfig:
    center_color: ColorMaskSpec = ColorMaskSpec()
    center_morph: MorphologyConfig = MorphologyConfig()
    shape: ShapeFilterConfig = ShapeFilterConfig()
    context: ContextRingConfig = ContextRingConfig()
    debug: DebugDrawConfig = DebugDrawConfig()

@dataclass
class DetectionMetrics:
    area: float = 0.0
    circularity: float = 0.0
    center_fill_ratio: float = 0.0
    ring_support_ratio: float = 0.0
    score: float = 0.0
    passes_area: bool = False
    passes_circularity: bool = False
    passes_center_fill: bool = False
    passes_context: bool = False
    accepted: bool = False

@dataclass
class Candidate:
    contour: np.ndarray
    area: float
    perimeter: float
    center: Tuple[int, int]
    radius: float
    box: Tuple[int, int, int, int]  # x, y, w, h

@dataclass
class Detection:
    box: Tuple[int, int, int, int]
    center: Tuple[int, int]
    radius: float
    contour: np.ndarray
    metrics: DetectionMetrics

    @property
    def accepted(self) -> bool:
        return self.metrics.accepted

    def to_dict(self) -> dict:
        x, y, w, h = self.box
        m = self.metrics
        return {
            "box": {"x": x, "y": y, "w": w, "h": h},
            "center": {"x": self.center[0], "y": self.center[1]},
            "radius": self.radius,
            "metrics": {
                "area": m.area,
                "circularity": m.circularity,
                "center_fill_ratio": m.center_fill_ratio,
                "ring_support_ratio": m.ring_support_ratio,
                "score": m.score,
                "passes_area": m.passes_area,
                "passes_circularity": m.passes_circularity,
                "passes_center_fill": m.passes_center_fill,
                "passes_context": m.passes_context,
                "accepted": m.accepted,
            },
        }

@dataclass
class RunResult:
    detections: List[Detection] = field(default_factory=list)
    accepted_centers: List[Tuple[int, int]] = field(default_factory=list)
    accepted_boxes: List[Tuple[int, int, int, int]] = field(default_factory=list)
    raw_candidate_count: int = 0
    accepted_count: int = 0
    accepted_ratio: float = 0.0
    scene_mask_coverage: float = 0.0
    score: float = 0.0
    # Cleaned center mask, kept for the debug mask view
    mask: Optional[np.ndarray] = None
    processing_time_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "detections": [d.to_dict() for d in self.detections],
            "accepted_centers": [{"x": x, "y": y} for x, y in self.accepted_centers],
            "accepted_boxes": [
                {"x": x, "y": y, "w": w, "h": h} for x, y, w, h in self.accepted_boxes
            ],
            "raw_candidate_count": self.raw_candidate_count,
            "accepted_count": self.accepted_count,
            "accepted_ratio": self.accepted_ratio,
            "scene_mask_coverage": self.scene_mask_coverage,
            "score": self.score,
            "processing_time_ms": self.processing_time_ms,
        }

@dataclass(frozen=True)
class ValidationFailure:
    field: str
    message: str

    def __str__(self) -> str:
        return self.message
