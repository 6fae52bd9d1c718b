"""
Per-tick signal models produced by the classifiers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

import numpy as np


class Family(str, Enum):
    """Classifier families. Each has its own model, timer and readiness."""
    OBJECT = "object"
    FACE = "face"


class ObjectLabel(str, Enum):
    """Distraction-relevant object categories, in precedence order."""
    HANDHELD_DEVICE = "handheld_device"
    ANIMAL = "animal"
    EXTRA_PERSON = "extra_person"


class FaceSignal(str, Enum):
    """Face-family signals debounced by the hysteresis engine."""
    NO_FACE = "no_face"
    LOOKING_AWAY = "looking_away"
    EYES_CLOSED = "eyes_closed"


@dataclass
class FaceSignals:
    """
    Result of one face-family tick.

    Attributes:
        face_found: Whether any face was detected.
        looking_away: Nose deviates from the face midline (None without a face).
        eyes_closed: Either eye is closed or the smile proxy fired (None without a face).
        landmarks: (68, 2) array of landmark coordinates, if a face was found.
        expressions: Expression scores keyed by name ("happy", ...).
        left_eye_ratio: Height/width ratio of the left eye.
        right_eye_ratio: Height/width ratio of the right eye.
    """
    face_found: bool
    looking_away: Optional[bool] = None
    eyes_closed: Optional[bool] = None
    landmarks: Optional[np.ndarray] = None
    expressions: Dict[str, float] = field(default_factory=dict)
    left_eye_ratio: Optional[float] = None
    right_eye_ratio: Optional[float] = None

    @classmethod
    def no_face(cls) -> "FaceSignals":
        return cls(face_found=False)


@dataclass
class SignalCounters:
    """Consecutive-positive-tick counters for the face family."""
    no_face: int = 0
    looking_away: int = 0
    eyes_closed: int = 0

    def get(self, signal: FaceSignal) -> int:
        return getattr(self, signal.value)

    def set(self, signal: FaceSignal, value: int) -> None:
        setattr(self, signal.value, value)

    def to_dict(self) -> Dict[str, int]:
        return {
            "no_face": self.no_face,
            "looking_away": self.looking_away,
            "eyes_closed": self.eyes_closed,
        }
