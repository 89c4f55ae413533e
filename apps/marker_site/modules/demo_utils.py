import random
import cv2
import numpy as np

def hex_to_bgr(color_hex):
    return tuple(int(color_hex.lstrip('#')[i:i+2], 16) for i in (4, 2, 0))

def draw_marker(image, center, radius, center_bgr, bg_bgr, ring_bgr=None, inner_percent=105, outer_percent=225):
    """
    Draws one marker: an optional support-colored annulus between inner_percent
    and outer_percent of the radius, then the solid center disc.
    """
    if ring_bgr is not None:
        outer = int(round(radius * outer_percent / 100.0))
        inner = int(round(radius * inner_percent / 100.0))
        cv2.circle(image, center, outer, ring_bgr, -1)
        cv2.circle(image, center, inner, bg_bgr, -1)
    cv2.circle(image, center, radius, center_bgr, -1)

def create_marker_image(width, height, num_markers, min_radius=10, max_radius=13,
                        bg_color_hex='#202020', center_color_hex='#e8d792',
                        ring_color_hex='#f0f0f0', with_ring=True, seed=None):
    """
    Generate a synthetic frame with non-overlapping circular markers.

    The default colors match the built-in detection config: a pale yellow
    center (OpenCV hue 24, saturation ~95) on a dark background, with a bright
    neutral ring around each marker.

    Returns:
        (image, markers) where markers is a list of dicts with x, y, radius
    """
    rng = random.Random(seed)
    bg_color = hex_to_bgr(bg_color_hex)
    center_bgr = hex_to_bgr(center_color_hex)
    ring_bgr = hex_to_bgr(ring_color_hex) if with_ring else None

    image = np.full((height, width, 3), bg_color, dtype=np.uint8)

    markers = []
    attempts = 0
    max_attempts = num_markers * 50

    while len(markers) < num_markers and attempts < max_attempts:
        attempts += 1

        radius = rng.randint(min_radius, max_radius)
        # Footprint includes the ring and a margin for the detector's ring probe
        reach = int(round(radius * 2.5)) + 2 if with_ring else radius + 2
        if 2 * reach >= width or 2 * reach >= height:
            continue
        x = rng.randint(reach, width - reach - 1)
        y = rng.randint(reach, height - reach - 1)

        overlap = False
        for m in markers:
            min_dist = reach + m['reach']
            if (x - m['x']) ** 2 + (y - m['y']) ** 2 < min_dist ** 2:
                overlap = True
                break
        if overlap:
            continue

        draw_marker(image, (x, y), radius, center_bgr, bg_color, ring_bgr)
        markers.append({'x': x, 'y': y, 'radius': radius, 'reach': reach})

    for m in markers:
        del m['reach']
    return image, markers
