"""
Tests for the face-family geometry and classifier.
"""

import time

import numpy as np
import pytest

from detection.face_signals import (
    FaceSignalClassifier,
    FaceSignalConfig,
    LEFT_EYE,
    are_eyes_closed,
    eye_ratio,
    is_looking_away,
    nose_deviation,
)
from inference.backend import FaceObservation
from models.frame import FrameData


class StubFaceBackend:
    def __init__(self, faces):
        self.faces = faces
        self.calls = 0

    def detect_faces(self, frame):
        self.calls += 1
        return self.faces


class TestLookingAway:
    def test_centered_nose(self, make_landmarks):
        deviation, width = nose_deviation(make_landmarks())
        assert width == 100
        assert deviation == 0
        assert is_looking_away(make_landmarks()) is False

    def test_deviation_just_above_ratio(self, make_landmarks):
        assert is_looking_away(make_landmarks(nose_offset=21)) is True
        assert is_looking_away(make_landmarks(nose_offset=-21)) is True

    def test_deviation_below_ratio(self, make_landmarks):
        # Deviation must exceed 0.2 * faceWidth
        assert is_looking_away(make_landmarks(nose_offset=19.5)) is False

    def test_custom_ratio(self, make_landmarks):
        assert is_looking_away(make_landmarks(nose_offset=15), ratio=0.1) is True

    def test_degenerate_face_width(self, make_landmarks):
        pts = make_landmarks(nose_offset=50)
        pts[16] = pts[0]
        assert is_looking_away(pts) is False


class TestEyesClosed:
    def test_open_eyes(self, make_landmarks):
        pts = make_landmarks(eye_height=8)
        assert eye_ratio(pts[LEFT_EYE]) == pytest.approx(0.4)
        assert are_eyes_closed(pts) is False

    def test_both_eyes_closed(self, make_landmarks):
        assert are_eyes_closed(make_landmarks(eye_height=2)) is True

    def test_one_eye_closed_is_enough(self, make_landmarks):
        assert are_eyes_closed(make_landmarks(eye_height=8, right_eye_height=2)) is True

    def test_ratio_threshold_boundary(self, make_landmarks):
        assert are_eyes_closed(make_landmarks(eye_height=5.4)) is False
        assert are_eyes_closed(make_landmarks(eye_height=5.3)) is True

    def test_happy_counts_as_closed(self, make_landmarks):
        pts = make_landmarks(eye_height=8)
        assert are_eyes_closed(pts, happy=0.95) is True
        assert are_eyes_closed(pts, happy=0.9) is False

    def test_degenerate_eye_width_counts_open(self, make_landmarks):
        pts = make_landmarks(eye_height=0)
        pts[39] = pts[36]
        pts[45] = pts[42]
        assert eye_ratio(pts[LEFT_EYE]) is None
        assert are_eyes_closed(pts) is False


class TestFaceSignalClassifier:
    def _frame(self):
        return FrameData.from_numpy(np.zeros((480, 640, 3), dtype=np.uint8), timestamp=time.time())

    def test_no_faces(self):
        signals = FaceSignalClassifier().classify(StubFaceBackend([]), self._frame())
        assert signals.face_found is False
        assert signals.looking_away is None
        assert signals.eyes_closed is None

    def test_first_face_is_used(self, make_landmarks):
        faces = [
            FaceObservation(box=(0, 0, 200, 200), landmarks=make_landmarks(nose_offset=40)),
            FaceObservation(box=(0, 0, 50, 50), landmarks=make_landmarks()),
        ]
        signals = FaceSignalClassifier().classify(StubFaceBackend(faces), self._frame())
        assert signals.face_found is True
        assert signals.looking_away is True
        assert signals.eyes_closed is False
        assert signals.left_eye_ratio == pytest.approx(0.4)

    def test_happy_expression_from_backend(self, make_landmarks):
        faces = [FaceObservation(box=(0, 0, 1, 1), landmarks=make_landmarks(),
                                 expressions={"happy": 0.97, "neutral": 0.03})]
        signals = FaceSignalClassifier().classify(StubFaceBackend(faces), self._frame())
        assert signals.eyes_closed is True
        assert signals.expressions["happy"] == 0.97

    def test_config_thresholds(self, make_landmarks):
        cfg = FaceSignalConfig.from_dict({"looking_away_ratio": 0.5, "eye_closed_ratio": 0.5})
        faces = [FaceObservation(box=(0, 0, 1, 1), landmarks=make_landmarks(nose_offset=30))]
        signals = FaceSignalClassifier(cfg).classify(StubFaceBackend(faces), self._frame())
        assert signals.looking_away is False
        assert signals.eyes_closed is True

    def test_frame_without_dimensions_is_skipped(self):
        backend = StubFaceBackend([])
        empty = FrameData(frame=np.zeros((0, 0, 3), dtype=np.uint8), width=0, height=0, timestamp=0.0)
        assert FaceSignalClassifier().classify(backend, empty) is None
        assert FaceSignalClassifier().classify(backend, None) is None
        assert backend.calls == 0

    def test_too_few_landmarks(self):
        faces = [FaceObservation(box=(0, 0, 1, 1), landmarks=np.zeros((5, 2)))]
        with pytest.raises(ValueError, match="68 landmarks"):
            FaceSignalClassifier().classify(StubFaceBackend(faces), self._frame())
