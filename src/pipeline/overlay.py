"""
Preview overlay: object boxes, face landmarks and the active verdict.
"""

from __future__ import annotations

from typing import List, Optional

import cv2
import numpy as np

from inference.backend import Detection
from models.signals import FaceSignals
from models.verdict import DistractionVerdict

# Colors (BGR)
COLOR_OBJECT = (255, 201, 0)  # Cyan
COLOR_LANDMARK = (0, 255, 0)  # Green
COLOR_FOCUSED = (115, 213, 46)  # Green
COLOR_DISTRACTED = (87, 71, 255)  # Red


def draw_overlay(
    frame: np.ndarray,
    detections: List[Detection],
    face: Optional[FaceSignals],
    verdict: DistractionVerdict,
) -> np.ndarray:
    """Return an annotated copy of `frame`. The input frame is not modified."""
    out = frame.copy()
    font = cv2.FONT_HERSHEY_SIMPLEX

    for det in detections:
        x1, y1, x2, y2 = int(det.x1), int(det.y1), int(det.x2), int(det.y2)
        cv2.rectangle(out, (x1, y1), (x2, y2), COLOR_OBJECT, 2)
        label = f"{det.class_name} ({det.confidence * 100:.0f}%)"
        cv2.putText(out, label, (x1 + 2, max(12, y1 - 4)), font, 0.45, COLOR_OBJECT, 1)

    if face is not None and face.face_found and face.landmarks is not None:
        for x, y in face.landmarks.astype(int):
            cv2.circle(out, (int(x), int(y)), 1, COLOR_LANDMARK, -1)

    color = COLOR_DISTRACTED if verdict.distracted else COLOR_FOCUSED
    status = verdict.kind.value.replace("_", " ") if verdict.distracted else "focused"
    (tw, th), _ = cv2.getTextSize(status, font, 0.6, 2)
    cv2.rectangle(out, (4, 4), (12 + tw, 12 + th), color, -1)
    cv2.putText(out, status, (8, 8 + th), font, 0.6, (255, 255, 255), 2)

    return out
