import numpy as np
from typing import List, Tuple

from .keypoints import Keypoint
from ..utils.exceptions import InvalidInput

# COCO keypoint order used by YOLO pose models
COCO_KEYPOINT_NAMES = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

LEFT_SHOULDER = 5
RIGHT_SHOULDER = 6
LEFT_HIP = 11
RIGHT_HIP = 12


def _midpoint(
        xy: np.ndarray,
        conf: np.ndarray,
        first: int,
        second: int,
) -> Tuple[float, float, float]:
    x = float((xy[first][0] + xy[second][0]) / 2)
    y = float((xy[first][1] + xy[second][1]) / 2)
    return x, y, float(min(conf[first], conf[second]))


def keypoints_from_coco(
        xy: np.ndarray,
        conf: np.ndarray,
        image_size: Tuple[int, int],
) -> List[Keypoint]:
    """
    Convert COCO-17 pixel keypoints into named, normalized keypoints.

    Zero-confidence joints are dropped. ``neck`` and ``root`` do not exist in
    COCO; they are synthesized as shoulder and hip midpoints when both parents
    are present, with the weaker parent's confidence.

    Args:
        xy: (17, 2) pixel coordinates
        conf: (17,) confidences
        image_size: (width, height) in pixels
    """
    xy = np.asarray(xy, dtype=np.float64)
    conf = np.asarray(conf, dtype=np.float64)

    if xy.shape != (len(COCO_KEYPOINT_NAMES), 2) or conf.shape != (len(COCO_KEYPOINT_NAMES),):
        raise InvalidInput(
            "Unexpected COCO keypoint array shape",
            details={'xy_shape': xy.shape, 'conf_shape': conf.shape}
        )

    width, height = image_size
    if width <= 0 or height <= 0:
        raise InvalidInput("Invalid image size", details={'image_size': image_size})

    normalized = xy / np.array([width, height], dtype=np.float64)
    normalized = np.clip(normalized, 0.0, 1.0)
    conf = np.clip(np.nan_to_num(conf, nan=0.0), 0.0, 1.0)

    keypoints = [
        Keypoint(name, float(normalized[i][0]), float(normalized[i][1]), float(conf[i]))
        for i, name in enumerate(COCO_KEYPOINT_NAMES)
        if conf[i] > 0
    ]

    for name, first, second in (
            ("neck", LEFT_SHOULDER, RIGHT_SHOULDER),
            ("root", LEFT_HIP, RIGHT_HIP),
    ):
        if conf[first] > 0 and conf[second] > 0:
            x, y, c = _midpoint(normalized, conf, first, second)
            keypoints.append(Keypoint(name, x, y, c))

    return keypoints
