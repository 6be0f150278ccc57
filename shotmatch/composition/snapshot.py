import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from .classifier import PositionZone, ShootingAngle, classify_angle, classify_position
from ..vision.detector import Detection
from ..vision.face_lighting import (
    FaceFrame,
    LightingDirection,
    LightingQuality,
    estimate_optional_lighting,
)
from ..vision.keypoints import BodyFrame, Keypoint, normalize_keypoints, split_clusters
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompositionSnapshot:
    """Frozen, classified description of one analyzed frame"""
    body: BodyFrame
    position: PositionZone
    angle: ShootingAngle
    face: Optional[FaceFrame] = None
    lighting_direction: Optional[LightingDirection] = None
    lighting_quality: Optional[LightingQuality] = None

    @property
    def area_ratio(self) -> float:
        return self.body.area_ratio

    @property
    def has_lighting(self) -> bool:
        return self.lighting_quality is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'body': self.body.to_dict(),
            'position': self.position.value,
            'angle': self.angle.value,
            'face_detected': self.face is not None,
            'lighting_direction': self.lighting_direction.value if self.lighting_direction else None,
            'lighting_quality': self.lighting_quality.value if self.lighting_quality else None,
        }


def build_snapshot(
        keypoints: Iterable[Keypoint],
        face: Optional[FaceFrame] = None,
) -> CompositionSnapshot:
    """
    Normalize, classify and freeze one detection.

    Raises:
        NoSubjectDetected: no keypoint clears the confidence threshold
        InvalidInput: malformed keypoint data
    """
    keypoints = list(keypoints)
    body = normalize_keypoints(keypoints)
    head, torso = split_clusters(keypoints)
    lighting_direction, lighting_quality = estimate_optional_lighting(face)

    return CompositionSnapshot(
        body=body,
        position=classify_position(body.bounding_box),
        angle=classify_angle(head, torso),
        face=face,
        lighting_direction=lighting_direction,
        lighting_quality=lighting_quality,
    )


class CompositionAnalyzer:
    """Builds snapshots from detector output and keeps simple counters"""

    def __init__(self):
        self.analysis_count = 0
        self.failure_count = 0
        self.total_analysis_time = 0.0

        logger.info("composition_analyzer_initialized")

    def analyze(
            self,
            keypoints: Iterable[Keypoint],
            face: Optional[FaceFrame] = None,
    ) -> CompositionSnapshot:
        """Snapshot for raw keypoints plus optional face"""
        start_time = time.perf_counter()

        try:
            snapshot = build_snapshot(keypoints, face)
        except Exception:
            self.failure_count += 1
            raise
        finally:
            self.analysis_count += 1
            self.total_analysis_time += time.perf_counter() - start_time

        logger.debug(
            "composition_analysis_completed",
            position=snapshot.position.value,
            angle=snapshot.angle.value,
            area_ratio=round(snapshot.area_ratio, 3),
            lighting_quality=snapshot.lighting_quality.value if snapshot.lighting_quality else None,
        )
        return snapshot

    def analyze_detection(self, detection: Detection) -> CompositionSnapshot:
        """Snapshot for a full detector result"""
        return self.analyze(detection.keypoints, detection.face)

    def get_performance_stats(self) -> Dict[str, float]:
        """Get performance statistics."""
        if self.analysis_count == 0:
            return {'analysis_count': 0}

        return {
            'analysis_count': self.analysis_count,
            'failure_count': self.failure_count,
            'average_analysis_time_ms': round(
                self.total_analysis_time / self.analysis_count * 1000, 3
            ),
        }
