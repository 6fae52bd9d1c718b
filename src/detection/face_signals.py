"""
Face-family classifier: gaze deviation and eye closure from 68 landmarks.

Landmarks follow the iBUG 300-W order used by dlib's shape predictor:

    jaw contour        0-16   (0 = user's right jaw edge in image left)
    nose               27-35  (33 = lower nose tip)
    left eye (image)   36-41  (36 outer corner, 39 inner corner)
    right eye (image)  42-47  (42 inner corner, 45 outer corner)

Each eye is six points p0..p5: p0/p3 are the horizontal corners, p1/p2 the
upper lid and p4/p5 the lower lid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from inference.backend import FaceBackend, FaceObservation
from models.frame import FrameData
from models.signals import FaceSignals

JAW_LEFT = 0
JAW_RIGHT = 16
NOSE_TIP = 33
LEFT_EYE = slice(36, 42)
RIGHT_EYE = slice(42, 48)
NUM_LANDMARKS = 68


@dataclass
class FaceSignalConfig:
    looking_away_ratio: float = 0.2
    eye_closed_ratio: float = 0.268
    happy_threshold: float = 0.9

    @classmethod
    def from_dict(cls, d: dict) -> "FaceSignalConfig":
        return cls(
            looking_away_ratio=float(d.get("looking_away_ratio", 0.2)),
            eye_closed_ratio=float(d.get("eye_closed_ratio", 0.268)),
            happy_threshold=float(d.get("happy_threshold", 0.9)),
        )


def nose_deviation(landmarks: np.ndarray) -> tuple[float, float]:
    """Return (deviation, face_width): nose tip distance from the jaw midline."""
    jaw_left = landmarks[JAW_LEFT]
    jaw_right = landmarks[JAW_RIGHT]
    nose_tip = landmarks[NOSE_TIP]

    face_width = float(jaw_right[0] - jaw_left[0])
    deviation = abs(float(nose_tip[0]) - (float(jaw_left[0]) + face_width / 2))
    return deviation, face_width


def is_looking_away(landmarks: np.ndarray, ratio: float = 0.2) -> bool:
    deviation, face_width = nose_deviation(landmarks)
    if face_width <= 0:
        return False
    return deviation > ratio * face_width


def eye_ratio(eye: np.ndarray) -> Optional[float]:
    """
    Height/width ratio of one eye; None when the corners are degenerate.

    Image y grows downward, so an open eye has lower lid below upper lid
    and a positive height.
    """
    top = (eye[1][1] + eye[2][1]) / 2
    bottom = (eye[4][1] + eye[5][1]) / 2
    width = eye[3][0] - eye[0][0]
    if width <= 0:
        return None
    return float((bottom - top) / width)


def are_eyes_closed(
    landmarks: np.ndarray,
    happy: float = 0.0,
    eye_closed_ratio: float = 0.268,
    happy_threshold: float = 0.9,
) -> bool:
    # A broad smile squeezes the eyes; it is treated as closed eyes as well.
    if happy > happy_threshold:
        return True
    for eye in (landmarks[LEFT_EYE], landmarks[RIGHT_EYE]):
        ratio = eye_ratio(eye)
        if ratio is not None and ratio < eye_closed_ratio:
            return True
    return False


class FaceSignalClassifier:
    """Classify one frame into FaceSignals."""

    def __init__(self, config: Optional[FaceSignalConfig] = None):
        self.config = config or FaceSignalConfig()

    def signals_from_faces(self, faces: List[FaceObservation]) -> FaceSignals:
        if not faces:
            return FaceSignals.no_face()

        face = faces[0]
        landmarks = np.asarray(face.landmarks, dtype=float)
        if landmarks.shape[0] < NUM_LANDMARKS:
            raise ValueError(f"Expected {NUM_LANDMARKS} landmarks, got {landmarks.shape[0]}")

        cfg = self.config
        happy = float(face.expressions.get("happy", 0.0))
        return FaceSignals(
            face_found=True,
            looking_away=is_looking_away(landmarks, cfg.looking_away_ratio),
            eyes_closed=are_eyes_closed(landmarks, happy, cfg.eye_closed_ratio, cfg.happy_threshold),
            landmarks=landmarks,
            expressions=dict(face.expressions),
            left_eye_ratio=eye_ratio(landmarks[LEFT_EYE]),
            right_eye_ratio=eye_ratio(landmarks[RIGHT_EYE]),
        )

    def classify(self, backend: FaceBackend, frame_data: Optional[FrameData]) -> Optional[FaceSignals]:
        """
        Run the backend and derive signals.

        Returns None when the frame has no usable dimensions yet; callers
        treat that as a skipped tick.
        """
        if frame_data is None or not frame_data.has_dimensions:
            return None
        return self.signals_from_faces(backend.detect_faces(frame_data.frame))
