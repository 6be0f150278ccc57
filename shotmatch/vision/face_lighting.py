import functools
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .keypoints import Rect

# shadow-to-face area ratio upper bounds per quality bucket
EXCELLENT_SHADOW_RATIO = 0.1
GOOD_SHADOW_RATIO = 0.2
FAIR_SHADOW_RATIO = 0.4


class LightingDirection(Enum):
    """Where the key light comes from"""
    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    FRONT_LEFT = "front_left"
    FRONT_RIGHT = "front_right"
    BACK_LEFT = "back_left"
    BACK_RIGHT = "back_right"
    UNKNOWN = "unknown"


# Defined for presentation, never produced by estimate_lighting()
UNREACHABLE_LIGHTING_DIRECTIONS = frozenset({
    LightingDirection.BACK,
    LightingDirection.FRONT_LEFT,
    LightingDirection.FRONT_RIGHT,
    LightingDirection.BACK_LEFT,
    LightingDirection.BACK_RIGHT,
    LightingDirection.UNKNOWN,
})


@functools.total_ordering
class LightingQuality(Enum):
    """Ordered: EXCELLENT > GOOD > FAIR > POOR"""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def rank(self) -> int:
        return _QUALITY_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, LightingQuality):
            return NotImplemented
        return self.rank < other.rank


_QUALITY_RANK = {
    LightingQuality.POOR: 0,
    LightingQuality.FAIR: 1,
    LightingQuality.GOOD: 2,
    LightingQuality.EXCELLENT: 3,
}


@dataclass(frozen=True)
class FaceFrame:
    """Face box with the shadow regions found inside it, largest first"""
    bounding_box: Rect
    shadow_regions: Tuple[Rect, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # accept any sequence, store a tuple
        object.__setattr__(self, 'shadow_regions', tuple(self.shadow_regions))

    @property
    def shadow_area(self) -> float:
        return sum(region.area for region in self.shadow_regions)


def lighting_quality_for_ratio(shadow_ratio: float) -> LightingQuality:
    """Step function over the shadow-to-face area ratio"""
    if shadow_ratio < EXCELLENT_SHADOW_RATIO:
        return LightingQuality.EXCELLENT
    elif shadow_ratio < GOOD_SHADOW_RATIO:
        return LightingQuality.GOOD
    elif shadow_ratio < FAIR_SHADOW_RATIO:
        return LightingQuality.FAIR
    return LightingQuality.POOR


def lighting_direction_for_offset(delta_x: float, delta_y: float) -> LightingDirection:
    """
    Light sits opposite the shadow: a shadow right of the face center means
    light from the left. Ties go to the vertical axis.
    """
    if abs(delta_x) > abs(delta_y):
        return LightingDirection.LEFT if delta_x > 0 else LightingDirection.RIGHT
    return LightingDirection.TOP if delta_y > 0 else LightingDirection.BOTTOM


def estimate_lighting(face: FaceFrame) -> Tuple[LightingDirection, LightingQuality]:
    """Coarse light direction and quality from the face's shadow regions"""
    if not face.shadow_regions:
        return LightingDirection.FRONT, LightingQuality.EXCELLENT

    face_box = face.bounding_box
    shadow = face.shadow_regions[0]

    direction = lighting_direction_for_offset(
        shadow.mid_x - face_box.mid_x,
        shadow.mid_y - face_box.mid_y,
    )

    face_area = face_box.area
    if face_area <= 0:
        return direction, LightingQuality.POOR

    return direction, lighting_quality_for_ratio(face.shadow_area / face_area)


def estimate_optional_lighting(
        face: Optional[FaceFrame]
) -> Tuple[Optional[LightingDirection], Optional[LightingQuality]]:
    """Lighting fields for a snapshot; both absent without a face"""
    if face is None:
        return None, None
    return estimate_lighting(face)
