import cv2
import numpy as np
from typing import Union
from .color import ensure_bgr
from .errors import InvalidInputError

BGRA_CHANNELS = 4

def frame_from_bgra(
    pixels: Union[bytes, bytearray, memoryview, np.ndarray],
    width: int,
    height: int,
    stride_bytes: int
) -> np.ndarray:
    """
    Wrap a raw BGRA32 buffer as a top-down BGRA image.

    A positive stride means rows are stored top-down. A negative stride means
    the buffer holds bottom-up rows (as in a GDI DIB) and the result is flipped
    so row 0 is the top of the picture.

    Args:
        pixels: raw buffer, at least |stride| * height bytes
        width, height: image size in pixels
        stride_bytes: bytes per row, sign gives row order

    Returns:
        uint8 array of shape (height, width, 4)
    """
    if pixels is None:
        raise InvalidInputError("bgra pixels are missing.")
    if width <= 0 or height <= 0:
        raise InvalidInputError("width/height must be > 0.")
    if stride_bytes == 0:
        raise InvalidInputError("stride_bytes must not be 0.")

    abs_stride = abs(int(stride_bytes))
    if abs_stride < width * BGRA_CHANNELS:
        raise InvalidInputError("stride_bytes is smaller than width*4.")

    buf = np.frombuffer(pixels, dtype=np.uint8) if not isinstance(pixels, np.ndarray) else pixels.reshape(-1)
    if buf.dtype != np.uint8:
        buf = buf.view(np.uint8)

    if buf.size < abs_stride * height:
        raise InvalidInputError("bgra buffer is smaller than |stride_bytes| * height.")

    rows = buf[:abs_stride * height].reshape(height, abs_stride)
    image = rows[:, :width * BGRA_CHANNELS].reshape(height, width, BGRA_CHANNELS)

    if stride_bytes < 0:
        image = cv2.flip(image, 0)
    return image.copy()

def frame_from_array(image: np.ndarray) -> np.ndarray:
    """
    Accept a decoded gray, BGR or BGRA image and return it as BGR.
    """
    if image is None or image.size == 0:
        raise InvalidInputError("Bitmap input is empty.")
    if image.dtype != np.uint8:
        raise InvalidInputError("Frame must be an 8-bit image.")
    if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] not in (1, 3, 4)):
        raise InvalidInputError("Frame must have 1, 3 or 4 channels.")
    return ensure_bgr(image)

def load_frame(path: str) -> np.ndarray:
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise InvalidInputError(f"Failed to load scene image: {path}")
    return image
