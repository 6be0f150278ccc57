from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np

from .face_lighting import FaceFrame
from .keypoints import Keypoint, Rect
from .pose_adapter import keypoints_from_coco
from .shadow_estimator import estimate_shadow_regions
from ..utils.exceptions import (
    AnalysisError,
    DetectorError,
    InvalidInput,
    NoFaceDetected,
    NoSubjectDetected,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Detection:
    """Detector output for one image"""
    keypoints: Tuple[Keypoint, ...]
    face: Optional[FaceFrame] = None


class PoseDetector(ABC):
    """Body pose / face landmark detector boundary. Implementations wrap a real model."""

    @abstractmethod
    def detect_body(self, image: Any) -> Sequence[Keypoint]:
        """Keypoints for the primary person, empty when nobody is visible"""

    @abstractmethod
    def detect_face(self, image: Any) -> Optional[FaceFrame]:
        """Face box with shadow regions, None when no face is visible"""


def validate_image(image: Any) -> None:
    """Reject missing or empty pixel buffers"""
    if image is None:
        raise InvalidInput("Invalid input frame: None")
    if isinstance(image, np.ndarray) and image.size == 0:
        raise InvalidInput("Invalid input frame: empty array")


def run_detector(detector: PoseDetector, image: Any) -> Detection:
    """
    Run both detector passes and map failures at the boundary.

    A body pass failure becomes NoSubjectDetected; a face pass failure only
    drops the face.

    Raises:
        InvalidInput: image is missing or empty
        NoSubjectDetected: body pass failed
    """
    validate_image(image)

    try:
        keypoints = tuple(detector.detect_body(image))
    except AnalysisError:
        raise
    except Exception as e:
        logger.warning("body_detection_failed", error=str(e))
        raise NoSubjectDetected(
            f"Body detection failed: {e}", original_error=e
        ) from e

    try:
        face = detector.detect_face(image)
    except AnalysisError as e:
        logger.debug("face_detection_skipped", reason=e.error_code)
        face = None
    except Exception as e:
        logger.warning("face_detection_failed", error=str(e))
        face = None

    return Detection(keypoints=keypoints, face=face)


class ArrayPoseDetector(PoseDetector):
    """
    PoseDetector over plain callables returning numpy arrays.

    ``pose_fn(image)`` returns ``(xy, conf)`` COCO-17 arrays in pixels (or
    None when no person is found); ``face_fn(image)`` returns a normalized face
    Rect or None. Shadow regions are estimated from the pixels.
    """

    def __init__(
            self,
            pose_fn: Callable[[np.ndarray], Optional[Tuple[np.ndarray, np.ndarray]]],
            face_fn: Optional[Callable[[np.ndarray], Optional[Rect]]] = None,
            estimate_shadows: bool = True,
    ):
        self.pose_fn = pose_fn
        self.face_fn = face_fn
        self.estimate_shadows = estimate_shadows

    def detect_body(self, image: np.ndarray) -> Sequence[Keypoint]:
        result = self.pose_fn(image)
        if result is None:
            return []

        try:
            xy, conf = result
        except (TypeError, ValueError) as e:
            raise DetectorError(
                "Pose model returned an unexpected result", original_error=e
            ) from e

        height, width = image.shape[:2]
        return keypoints_from_coco(xy, conf, (width, height))

    def detect_face(self, image: np.ndarray) -> Optional[FaceFrame]:
        if self.face_fn is None:
            raise NoFaceDetected("No face model configured")

        face_box = self.face_fn(image)
        if face_box is None:
            return None

        shadows = estimate_shadow_regions(image, face_box) if self.estimate_shadows else []
        return FaceFrame(bounding_box=face_box, shadow_regions=tuple(shadows))
