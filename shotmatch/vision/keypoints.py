import math
import numbers
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from ..utils.exceptions import InvalidInput, NoSubjectDetected

# keypoints at or below this confidence are ignored for framing
CONFIDENCE_THRESHOLD = 0.3

# padding added to each side of the keypoint extent, normalized units
BOX_PADDING = 0.1

# returned when either anatomical cluster is missing
NEUTRAL_HEAD_BODY_RATIO = 1.0

HEAD_JOINTS = ("nose", "left_eye", "right_eye")
BODY_JOINTS = ("neck", "root")


@dataclass(frozen=True)
class Keypoint:
    """Single detected landmark, normalized to image size with origin top-left"""
    name: str
    x: float
    y: float
    confidence: float

    def __post_init__(self):
        for field_name in ("x", "y", "confidence"):
            value = getattr(self, field_name)
            # numpy scalars register as numbers.Real
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise InvalidInput(
                    f"Keypoint {self.name!r} has non-numeric {field_name}",
                    details={'keypoint': self.name, field_name: value}
                )
            value = float(value)
            object.__setattr__(self, field_name, value)
            if not 0.0 <= value <= 1.0:
                raise InvalidInput(
                    f"Keypoint {self.name!r} {field_name}={value} outside [0, 1]",
                    details={'keypoint': self.name, field_name: value}
                )


@dataclass(frozen=True)
class Rect:
    """Axis aligned rectangle in normalized image coordinates"""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_corners(cls, min_x: float, min_y: float, max_x: float, max_y: float) -> 'Rect':
        return cls(min_x, min_y, max_x - min_x, max_y - min_y)

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Tuple[float, float]:
        return self.mid_x, self.mid_y

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


@dataclass(frozen=True)
class BodyFrame:
    """Padded subject extent plus derived ratios"""
    bounding_box: Rect
    area_ratio: float
    head_body_ratio: float

    def to_dict(self) -> dict:
        return {
            'bounding_box': self.bounding_box.to_dict(),
            'area_ratio': self.area_ratio,
            'head_body_ratio': self.head_body_ratio,
        }


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def confident_keypoints(keypoints: Iterable[Keypoint]) -> List[Keypoint]:
    """Keypoints strictly above the confidence threshold"""
    return [kp for kp in keypoints if kp.confidence > CONFIDENCE_THRESHOLD]


def split_clusters(keypoints: Iterable[Keypoint]) -> Tuple[List[Keypoint], List[Keypoint]]:
    """
    Pick the head (nose, eyes) and body (neck, root) clusters out of a detection.

    Membership only depends on the joint being present in the input; the
    confidence threshold does not apply here.
    """
    head, body = [], []
    for kp in keypoints:
        if kp.name in HEAD_JOINTS:
            head.append(kp)
        elif kp.name in BODY_JOINTS:
            body.append(kp)
    return head, body


def head_body_ratio(head: Sequence[Keypoint], body: Sequence[Keypoint]) -> float:
    """Vertical span from the highest head point to the lowest body point"""
    if not head or not body:
        return NEUTRAL_HEAD_BODY_RATIO

    head_y = min(kp.y for kp in head)
    body_y = max(kp.y for kp in body)
    return abs(body_y - head_y)


def padded_bounding_box(points: Sequence[Keypoint]) -> Rect:
    """Extent of the points, padded and clamped to the unit square"""
    min_x = _clamp(min(kp.x for kp in points) - BOX_PADDING)
    min_y = _clamp(min(kp.y for kp in points) - BOX_PADDING)
    max_x = _clamp(max(kp.x for kp in points) + BOX_PADDING)
    max_y = _clamp(max(kp.y for kp in points) + BOX_PADDING)
    return Rect.from_corners(min_x, min_y, max_x, max_y)


def normalize_keypoints(keypoints: Iterable[Keypoint]) -> BodyFrame:
    """
    Turn one pose detection into a BodyFrame.

    Raises:
        NoSubjectDetected: no keypoint clears CONFIDENCE_THRESHOLD
    """
    keypoints = list(keypoints)
    valid = confident_keypoints(keypoints)

    if not valid:
        raise NoSubjectDetected(
            "No keypoint above confidence threshold",
            details={'keypoint_count': len(keypoints), 'threshold': CONFIDENCE_THRESHOLD}
        )

    box = padded_bounding_box(valid)
    head, body = split_clusters(keypoints)

    return BodyFrame(
        bounding_box=box,
        area_ratio=box.area,
        head_body_ratio=head_body_ratio(head, body),
    )
