"""
Face backend: dlib frontal face detector + 68-point shape predictor.

Expression scores come from an optional FER+ ONNX model run through
cv2.dnn. Without it, faces carry no expression scores and the smile proxy
for closed eyes never fires.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

import cv2
import numpy as np

from .backend import FaceBackend, FaceObservation

# Output order of the FER+ emotion model (onnx/models emotion-ferplus-8).
FERPLUS_LABELS = ("neutral", "happy", "surprise", "sad", "angry", "disgust", "fear", "contempt")


@dataclass(frozen=True)
class DlibFaceConfig:
    predictor_path: str
    expression_model: Optional[str] = None
    upsample: int = 0


class ExpressionClassifier:
    """FER+ emotion scores for a face crop via cv2.dnn."""

    input_size = 64

    def __init__(self, model_path: str):
        if not os.path.isfile(model_path):
            raise FileNotFoundError(f"Expression model not found: {model_path}")
        self._net = cv2.dnn.readNetFromONNX(model_path)

    def classify(self, gray: np.ndarray, box: tuple) -> Dict[str, float]:
        h, w = gray.shape[:2]
        x1, y1, x2, y2 = (int(v) for v in box)
        x1, y1 = max(0, x1), max(0, y1)
        x2, y2 = min(w, x2), min(h, y2)
        if x2 <= x1 or y2 <= y1:
            return {}

        crop = cv2.resize(gray[y1:y2, x1:x2], (self.input_size, self.input_size))
        blob = crop.astype(np.float32).reshape(1, 1, self.input_size, self.input_size)
        self._net.setInput(blob)
        logits = self._net.forward().reshape(-1)

        exp = np.exp(logits - np.max(logits))
        probs = exp / exp.sum()
        return {name: float(p) for name, p in zip(FERPLUS_LABELS, probs)}


class DlibFaceBackend(FaceBackend):
    def __init__(self, cfg: DlibFaceConfig):
        self.cfg = cfg
        try:
            import dlib  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "dlib is not installed. Install with `pip install dlib` "
                "or disable the face family (face.enabled: false)."
            ) from e

        if not os.path.isfile(cfg.predictor_path):
            raise FileNotFoundError(
                f"Cannot find dlib predictor file at: {cfg.predictor_path}. "
                "Download shape_predictor_68_face_landmarks.dat from dlib.net."
            )

        self._detector = dlib.get_frontal_face_detector()
        self._predictor = dlib.shape_predictor(cfg.predictor_path)
        self._expressions = (
            ExpressionClassifier(cfg.expression_model) if cfg.expression_model else None
        )
        logging.info(
            f"Face backend ready (predictor={cfg.predictor_path}, "
            f"expressions={'on' if self._expressions else 'off'})"
        )

    def detect_faces(self, frame: np.ndarray) -> List[FaceObservation]:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY) if frame.ndim == 3 else frame
        rects = list(self._detector(gray, self.cfg.upsample))
        rects.sort(key=lambda r: r.width() * r.height(), reverse=True)

        faces: List[FaceObservation] = []
        for rect in rects:
            shape = self._predictor(gray, rect)
            landmarks = np.array(
                [[shape.part(i).x, shape.part(i).y] for i in range(shape.num_parts)],
                dtype=float,
            )
            box = (rect.left(), rect.top(), rect.right(), rect.bottom())
            expressions = self._expressions.classify(gray, box) if self._expressions else {}
            faces.append(FaceObservation(box=box, landmarks=landmarks, expressions=expressions))
        return faces
