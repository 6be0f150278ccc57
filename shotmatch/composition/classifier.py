from enum import Enum
from typing import Sequence

from ..vision.keypoints import Keypoint, Rect

# 3x3 grid boundaries on each axis
LOWER_ZONE_BOUNDARY = 0.33
UPPER_ZONE_BOUNDARY = 0.67

# head/body vertical offset treated as level
ANGLE_DEADBAND = 0.1


class PositionZone(Enum):
    """Nine screen-position buckets of the subject's box midpoint"""
    CENTER = "center"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"


class ShootingAngle(Enum):
    """Camera elevation relative to the subject"""
    OVERHEAD = "overhead"
    EYE_LEVEL = "eye_level"
    LOW_ANGLE = "low_angle"
    UNKNOWN = "unknown"


_ZONE_GRID = {
    # (row, column) with -1 top/left, 0 center band, 1 bottom/right
    (-1, -1): PositionZone.TOP_LEFT,
    (-1, 0): PositionZone.TOP,
    (-1, 1): PositionZone.TOP_RIGHT,
    (0, -1): PositionZone.LEFT,
    (0, 0): PositionZone.CENTER,
    (0, 1): PositionZone.RIGHT,
    (1, -1): PositionZone.BOTTOM_LEFT,
    (1, 0): PositionZone.BOTTOM,
    (1, 1): PositionZone.BOTTOM_RIGHT,
}


def _band(value: float) -> int:
    # strict comparisons, boundary values stay in the center band
    if value < LOWER_ZONE_BOUNDARY:
        return -1
    if value > UPPER_ZONE_BOUNDARY:
        return 1
    return 0


def classify_position(box: Rect) -> PositionZone:
    """Zone of the box midpoint on a 3x3 grid"""
    return _ZONE_GRID[(_band(box.mid_y), _band(box.mid_x))]


def _mean_y(points: Sequence[Keypoint]) -> float:
    return sum(kp.y for kp in points) / len(points)


def classify_angle(head: Sequence[Keypoint], body: Sequence[Keypoint]) -> ShootingAngle:
    """
    Bucket the vertical offset between the head and body clusters.

    y grows downward, so a positive offset means the head sits below the body
    average.
    """
    if not head or not body:
        return ShootingAngle.UNKNOWN

    y_difference = _mean_y(head) - _mean_y(body)

    if y_difference > ANGLE_DEADBAND:
        return ShootingAngle.OVERHEAD
    elif y_difference < -ANGLE_DEADBAND:
        return ShootingAngle.LOW_ANGLE
    return ShootingAngle.EYE_LEVEL
