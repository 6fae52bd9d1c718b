"""
Inference backend interfaces.

Both families are opaque classifiers behind small protocols:
- object backends return pixel-space detections with class names
- face backends return 68-point landmarks plus optional expression scores
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

import numpy as np


@dataclass(frozen=True)
class Detection:
    x1: float
    y1: float
    x2: float
    y2: float
    confidence: float = 1.0
    class_id: Optional[int] = None
    class_name: Optional[str] = None


@dataclass
class FaceObservation:
    """
    One detected face.

    Attributes:
        box: (x1, y1, x2, y2) in pixel coordinates.
        landmarks: (68, 2) array in the iBUG 300-W point order.
        expressions: Expression scores in [0, 1] keyed by name ("happy", ...).
    """
    box: tuple
    landmarks: np.ndarray
    expressions: Dict[str, float] = field(default_factory=dict)


class ObjectBackend(Protocol):
    def detect(self, frame: np.ndarray) -> List[Detection]:
        ...


class FaceBackend(Protocol):
    def detect_faces(self, frame: np.ndarray) -> List[FaceObservation]:
        ...
