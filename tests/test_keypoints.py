import math
import random

import pytest
import numpy as np

import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from shotmatch.vision.keypoints import (
    Keypoint,
    Rect,
    normalize_keypoints,
    head_body_ratio,
    split_clusters,
    NEUTRAL_HEAD_BODY_RATIO,
)
from shotmatch.utils.exceptions import InvalidInput, NoSubjectDetected


@pytest.fixture
def standing_person():
    """Upright subject in the middle of the frame."""
    return [
        Keypoint("nose", 0.50, 0.30, 0.9),
        Keypoint("left_eye", 0.48, 0.28, 0.9),
        Keypoint("right_eye", 0.52, 0.28, 0.9),
        Keypoint("neck", 0.50, 0.40, 0.9),
        Keypoint("root", 0.50, 0.60, 0.8),
        Keypoint("left_ankle", 0.45, 0.80, 0.7),
        Keypoint("right_ankle", 0.55, 0.80, 0.7),
    ]


class TestKeypoint:
    """Test suite for Keypoint validation."""

    def test_valid_keypoint(self):
        kp = Keypoint("nose", 0.0, 1.0, 0.5)
        assert kp.x == 0.0
        assert kp.y == 1.0

    @pytest.mark.parametrize("x, y, confidence", [
        (1.5, 0.5, 0.9),
        (0.5, -0.1, 0.9),
        (0.5, 0.5, 1.2),
        (math.nan, 0.5, 0.9),
        (0.5, math.inf, 0.9),
    ])
    def test_malformed_keypoint_rejected(self, x, y, confidence):
        """Out of range or non-finite values raise InvalidInput."""
        with pytest.raises(InvalidInput):
            Keypoint("nose", x, y, confidence)

    @pytest.mark.parametrize("scalar", [np.float32, np.float64])
    def test_numpy_scalars_accepted(self, scalar):
        """Model outputs passed through unconverted become plain floats."""
        kp = Keypoint("nose", scalar(0.5), scalar(0.4), scalar(0.9))

        assert kp.x == pytest.approx(0.5)
        assert kp.y == pytest.approx(0.4)
        assert kp.confidence == pytest.approx(0.9)
        assert type(kp.x) is float
        assert type(kp.confidence) is float

    @pytest.mark.parametrize("value", [True, "0.5", None])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(InvalidInput):
            Keypoint("nose", value, 0.5, 0.9)


class TestNormalizeKeypoints:
    """Test suite for normalize_keypoints."""

    def test_padded_bounding_box(self, standing_person):
        """Extent is padded by 0.1 on every side."""
        body = normalize_keypoints(standing_person)
        box = body.bounding_box

        assert box.min_x == pytest.approx(0.35)
        assert box.max_x == pytest.approx(0.65)
        assert box.min_y == pytest.approx(0.18)
        assert box.max_y == pytest.approx(0.90)
        assert body.area_ratio == pytest.approx(0.30 * 0.72)

    def test_corner_points_are_clamped(self):
        """Padding past the frame edge is clamped, not wrapped."""
        body = normalize_keypoints([
            Keypoint("left_wrist", 0.0, 0.0, 0.9),
            Keypoint("right_ankle", 1.0, 1.0, 0.9),
        ])

        assert body.bounding_box == Rect(0.0, 0.0, 1.0, 1.0)
        assert body.area_ratio == pytest.approx(1.0)

    def test_single_point(self):
        """One confident point still yields a (small) box."""
        body = normalize_keypoints([Keypoint("nose", 0.5, 0.5, 0.9)])

        assert body.bounding_box.width == pytest.approx(0.2)
        assert body.bounding_box.height == pytest.approx(0.2)
        assert body.area_ratio == pytest.approx(0.04)

    def test_low_confidence_points_ignored(self, standing_person):
        """Points at or below 0.3 do not widen the box."""
        outlier = Keypoint("left_wrist", 0.95, 0.95, 0.3)
        body = normalize_keypoints(standing_person + [outlier])

        assert body.bounding_box.max_x == pytest.approx(0.65)

    def test_empty_input_fails(self):
        with pytest.raises(NoSubjectDetected):
            normalize_keypoints([])

    def test_all_below_threshold_fails(self):
        """Threshold is strict: exactly 0.3 is not enough."""
        with pytest.raises(NoSubjectDetected):
            normalize_keypoints([
                Keypoint("nose", 0.5, 0.5, 0.3),
                Keypoint("neck", 0.5, 0.6, 0.1),
            ])

    def test_random_sets_stay_in_unit_square(self):
        """Any set with one confident point gives a box inside [0,1]x[0,1]."""
        rng = random.Random(7)

        for _ in range(200):
            count = rng.randint(1, 20)
            keypoints = [
                Keypoint(f"kp{i}", rng.random(), rng.random(), rng.random())
                for i in range(count)
            ]
            keypoints.append(Keypoint("anchor", rng.random(), rng.random(), 0.31 + rng.random() * 0.69))

            box = normalize_keypoints(keypoints).bounding_box

            assert box.width >= 0 and box.height >= 0
            assert 0.0 <= box.min_x and box.max_x <= 1.0 + 1e-9
            assert 0.0 <= box.min_y and box.max_y <= 1.0 + 1e-9


class TestHeadBodyRatio:
    """Test suite for the head/body span."""

    def test_ratio_from_clusters(self, standing_person):
        """Span from the top head point to the lowest body point."""
        body = normalize_keypoints(standing_person)
        assert body.head_body_ratio == pytest.approx(0.60 - 0.28)

    def test_missing_body_cluster_is_neutral(self):
        body = normalize_keypoints([
            Keypoint("nose", 0.5, 0.3, 0.9),
            Keypoint("left_ankle", 0.5, 0.9, 0.9),
        ])
        assert body.head_body_ratio == NEUTRAL_HEAD_BODY_RATIO

    def test_missing_head_cluster_is_neutral(self):
        head, body = split_clusters([Keypoint("neck", 0.5, 0.4, 0.9)])
        assert head == []
        assert head_body_ratio(head, body) == NEUTRAL_HEAD_BODY_RATIO

    def test_cluster_membership_ignores_confidence(self):
        """Low confidence head points still count as present."""
        head, body = split_clusters([
            Keypoint("nose", 0.5, 0.3, 0.1),
            Keypoint("root", 0.5, 0.7, 0.9),
            Keypoint("left_knee", 0.5, 0.8, 0.9),
        ])
        assert [kp.name for kp in head] == ["nose"]
        assert [kp.name for kp in body] == ["root"]
