from .keypoints import Keypoint, Rect, BodyFrame, normalize_keypoints
from .face_lighting import (
    FaceFrame,
    LightingDirection,
    LightingQuality,
    estimate_lighting,
    UNREACHABLE_LIGHTING_DIRECTIONS,
)
from .pose_adapter import keypoints_from_coco
from .shadow_estimator import estimate_shadow_regions
from .detector import Detection, PoseDetector, ArrayPoseDetector, run_detector

__all__ = [
    'Keypoint',
    'Rect',
    'BodyFrame',
    'normalize_keypoints',
    'FaceFrame',
    'LightingDirection',
    'LightingQuality',
    'estimate_lighting',
    'UNREACHABLE_LIGHTING_DIRECTIONS',
    'keypoints_from_coco',
    'estimate_shadow_regions',
    'Detection',
    'PoseDetector',
    'ArrayPoseDetector',
    'run_detector',
]
