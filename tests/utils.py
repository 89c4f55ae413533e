import os
import sys
import cv2
import numpy as np
import requests

# Add apps to path
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from apps.marker_site.modules.marker_locator.schemas import (
    ChannelRange, ColorMaskSpec, ContextRingConfig, DetectionConfig,
    HueRange, MorphologyConfig, ShapeFilterConfig
)

# Configuration
BASE_URL = os.environ.get("TEST_BASE_URL", "http://127.0.0.1:8000/marker_site")

# BGR test colors and their OpenCV hues
GREEN = (0, 255, 0)     # hue 60
BLUE = (255, 0, 0)      # hue 120
YELLOW = (0, 255, 255)  # hue 30
BLACK = (0, 0, 0)

def server_available():
    """True if the py4web app answers at BASE_URL."""
    try:
        requests.get(f"{BASE_URL}/index", timeout=1)
        return True
    except requests.RequestException:
        return False

def create_disc_frame(width=120, height=120, center=(60, 60), radius=15, color=GREEN,
                      ring_color=None, inner_percent=105, outer_percent=225, bg=BLACK):
    """Frame with one solid disc, optionally inside a ring of another color."""
    img = np.full((height, width, 3), bg, dtype=np.uint8)
    if ring_color is not None:
        outer = int(round(radius * outer_percent / 100.0))
        inner = int(round(radius * inner_percent / 100.0))
        cv2.circle(img, center, outer, ring_color, -1)
        cv2.circle(img, center, inner, bg, -1)
    cv2.circle(img, center, radius, color, -1)
    return img

def create_split_ring_frame(radius=15, left_color=BLUE, right_color=YELLOW, size=120):
    """Disc with a ring whose left half and right half have different colors."""
    img = np.zeros((size, size, 3), dtype=np.uint8)
    c = size // 2
    yy, xx = np.mgrid[0:size, 0:size]
    dist = np.sqrt((xx - c) ** 2 + (yy - c) ** 2)
    ring = (dist >= radius * 1.05) & (dist <= radius * 2.25)
    img[ring & (xx < c)] = left_color
    img[ring & (xx >= c)] = right_color
    cv2.circle(img, (c, c), radius, GREEN, -1)
    return img

def create_test_image(filename, image):
    cv2.imwrite(filename, image)
    return filename

def remove_test_image(filename):
    """Removes the test image if it exists."""
    if os.path.exists(filename):
        os.remove(filename)

def create_dummy_text_file(filename, content="dummy content"):
    """Creates a dummy text file."""
    with open(filename, 'w') as f:
        f.write(content)
    return filename

def green_marker_config(context_enabled=False, min_support_ratio=0.42, exclude_color=None,
                        min_area=50, max_area=2000, min_circularity=0.7, min_fill_ratio=0.6):
    """Green centers, blue support ring, no morphology."""
    return DetectionConfig(
        center_color=ColorMaskSpec(
            hues=(HueRange(50, 70),),
            sat_range=ChannelRange(100, 255),
            val_range=ChannelRange(100, 255)
        ),
        center_morph=MorphologyConfig(),
        shape=ShapeFilterConfig(
            min_area=min_area, max_area=max_area,
            min_circularity=min_circularity, min_fill_ratio=min_fill_ratio
        ),
        context=ContextRingConfig(
            enabled=context_enabled,
            inner_radius_percent=105,
            outer_radius_percent=225,
            support_color=ColorMaskSpec(
                hues=(HueRange(110, 130),),
                sat_range=ChannelRange(100, 255),
                val_range=ChannelRange(100, 255)
            ),
            exclude_color=exclude_color,
            min_support_ratio=min_support_ratio
        )
    )
