"""
Signal classifiers for the two families.

- ObjectSignalClassifier: handheld device / animal / extra person
- FaceSignalClassifier: face presence, looking away, eyes closed
"""

from .object_signals import ObjectSignalClassifier, ObjectSignalConfig
from .face_signals import FaceSignalClassifier, FaceSignalConfig, is_looking_away, are_eyes_closed, eye_ratio

__all__ = [
    "ObjectSignalClassifier",
    "ObjectSignalConfig",
    "FaceSignalClassifier",
    "FaceSignalConfig",
    "is_looking_away",
    "are_eyes_closed",
    "eye_ratio",
]
