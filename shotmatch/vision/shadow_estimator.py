import numpy as np
import cv2
from typing import List

from .keypoints import Rect
from ..utils.exceptions import InvalidInput
from ..utils.logger import get_logger

logger = get_logger(__name__)

# a pixel is shadow when darker than this fraction of the face's mean luminance
SHADOW_LUMINANCE_FACTOR = 0.6

# blobs smaller than this fraction of the face crop are ignored
MIN_SHADOW_FRACTION = 0.02

MAX_SHADOW_REGIONS = 4


def _face_crop_bounds(face_box: Rect, width: int, height: int):
    x1 = int(np.clip(round(face_box.min_x * width), 0, width))
    y1 = int(np.clip(round(face_box.min_y * height), 0, height))
    x2 = int(np.clip(round(face_box.max_x * width), 0, width))
    y2 = int(np.clip(round(face_box.max_y * height), 0, height))
    return x1, y1, x2, y2


def estimate_shadow_regions(image: np.ndarray, face_box: Rect) -> List[Rect]:
    """
    Coarse shadow rectangles inside a face box.

    Thresholds the face crop against its own mean luminance and returns the
    bounding boxes of the dark blobs in normalized image coordinates,
    largest first. Not a photometric model.
    """
    if image is None or not isinstance(image, np.ndarray) or image.size == 0:
        raise InvalidInput("Invalid input frame")

    height, width = image.shape[:2]
    x1, y1, x2, y2 = _face_crop_bounds(face_box, width, height)

    if x2 <= x1 or y2 <= y1:
        logger.debug("empty_face_crop", face_box=face_box.to_dict())
        return []

    crop = image[y1:y2, x1:x2]
    if crop.ndim == 3:
        gray = cv2.cvtColor(crop, cv2.COLOR_BGR2GRAY)
    else:
        gray = crop.astype(np.uint8)

    mean_luminance = float(np.mean(gray))
    if mean_luminance <= 0:
        return []

    _, mask = cv2.threshold(
        gray, mean_luminance * SHADOW_LUMINANCE_FACTOR, 255, cv2.THRESH_BINARY_INV
    )
    kernel = np.ones((3, 3), dtype=np.uint8)
    mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)

    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    min_area = MIN_SHADOW_FRACTION * gray.shape[0] * gray.shape[1]
    boxes = []
    for contour in contours:
        bx, by, bw, bh = cv2.boundingRect(contour)
        if bw * bh < min_area:
            continue
        boxes.append((bw * bh, bx, by, bw, bh))

    boxes.sort(key=lambda item: item[0], reverse=True)

    regions = [
        Rect(
            x=(x1 + bx) / width,
            y=(y1 + by) / height,
            width=bw / width,
            height=bh / height,
        )
        for _, bx, by, bw, bh in boxes[:MAX_SHADOW_REGIONS]
    ]

    logger.debug("shadow_regions_estimated", count=len(regions), mean_luminance=round(mean_luminance, 1))
    return regions
