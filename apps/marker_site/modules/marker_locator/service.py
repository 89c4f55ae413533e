import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from .schemas import DetectionConfig, RunResult
from .errors import InvalidInputError, MarkerLocatorError, StatusCode
from .validation import validate_config
from .active_config import get_active_config
from .detector import find_markers
from .frame import frame_from_array, frame_from_bgra, load_frame
from .overlay import render_debug_views

logger = logging.getLogger(__name__)

@dataclass
class LocateResponse:
    status: StatusCode = StatusCode.OK
    error: str = ""
    points: List[Tuple[int, int]] = field(default_factory=list)
    total_found: int = 0
    written: int = 0
    result: Optional[RunResult] = None
    debug_image: Optional[np.ndarray] = None

    @property
    def ok(self) -> bool:
        return self.status == StatusCode.OK

    def to_dict(self) -> dict:
        return {
            "status": self.status.name,
            "status_code": int(self.status),
            "error": self.error,
            "points": [{"x": x, "y": y} for x, y in self.points],
            "total_found": self.total_found,
            "written": self.written,
            "result": self.result.to_dict() if self.result is not None else None,
        }

def parse_capacity(value) -> Optional[int]:
    """
    Capacity from a request field: None or '' means no limit.
    Raises InvalidInputError when the value is not an integer.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"capacity must be an integer, got {value!r}.") from e

def _failure(status: StatusCode, message: str) -> LocateResponse:
    return LocateResponse(status=status, error=message)

def _run(frame: np.ndarray, config: Optional[DetectionConfig], capacity: Optional[int], debug: bool) -> LocateResponse:
    if capacity is not None and capacity < 0:
        return _failure(StatusCode.INVALID_ARGUMENT, "capacity must be >= 0.")

    if config is None:
        config = get_active_config()
    else:
        failure = validate_config(config)
        if failure is not None:
            logger.warning("locate: config rejected (%s)", failure.field)
            return _failure(StatusCode.CONFIG_ERROR, failure.message)

    try:
        result = find_markers(frame, config)
    except MarkerLocatorError as e:
        if e.status == StatusCode.RUNTIME_ERROR:
            logger.exception("locate: detection failed")
        else:
            logger.warning("locate: %s", e)
        return _failure(e.status, str(e))

    centers = list(result.accepted_centers)
    response = LocateResponse(result=result, total_found=len(centers))

    if capacity is None:
        response.points = centers
    elif capacity == 0:
        # Count-only query
        response.points = []
    else:
        response.points = centers[:capacity]
        if len(centers) > capacity:
            response.status = StatusCode.BUFFER_TOO_SMALL
            response.error = "Output buffer too small."
    response.written = len(response.points)

    if debug:
        _, _, response.debug_image = render_debug_views(frame, result, config.debug)

    return response

def locate(
    frame: np.ndarray,
    config: Optional[DetectionConfig] = None,
    capacity: Optional[int] = None,
    debug: bool = False
) -> LocateResponse:
    """
    Find accepted marker centers in a decoded frame.

    Never raises for bad input or config; the outcome is reported in
    LocateResponse.status.

    Args:
        frame: gray, BGR or BGRA uint8 image
        config: explicit config (validated here) or None for the active config
        capacity: maximum number of points to return, None for all, 0 to count only
        debug: attach the side-by-side debug image

    Returns:
        LocateResponse
    """
    try:
        frame = frame_from_array(frame)
    except MarkerLocatorError as e:
        logger.warning("locate: %s", e)
        return _failure(e.status, str(e))
    return _run(frame, config, capacity, debug)

def locate_bgra(
    pixels,
    width: int,
    height: int,
    stride_bytes: int,
    config: Optional[DetectionConfig] = None,
    capacity: Optional[int] = None,
    debug: bool = False
) -> LocateResponse:
    """
    Same as locate() for a raw BGRA32 buffer. Negative stride_bytes means
    bottom-up rows.
    """
    try:
        frame = frame_from_bgra(pixels, width, height, stride_bytes)
    except MarkerLocatorError as e:
        logger.warning("locate_bgra: %s", e)
        return _failure(e.status, str(e))
    return _run(frame, config, capacity, debug)

def locate_file(
    path: str,
    config: Optional[DetectionConfig] = None,
    capacity: Optional[int] = None,
    debug: bool = False
) -> LocateResponse:
    try:
        frame = load_frame(path)
    except MarkerLocatorError as e:
        logger.warning("locate_file: %s", e)
        return _failure(e.status, str(e))
    return _run(frame, config, capacity, debug)
