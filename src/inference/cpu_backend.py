"""
Object backend: Ultralytics YOLO on the CPU.

A COCO-trained model already knows every class the object family reacts to
("cell phone", "cat", "dog", "person"). Prediction is restricted to the
configured class names so the model skips everything else in the scene.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .backend import Detection, ObjectBackend


@dataclass(frozen=True)
class CpuYoloConfig:
    """
    Attributes:
        model: Weights file or Ultralytics model name.
        conf_threshold: Lowest confidence the model reports.
        iou_threshold: NMS overlap threshold.
        tracked_names: Class names to predict; None predicts every class.
    """
    model: str
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    tracked_names: Optional[Sequence[str]] = None


def _to_numpy(values) -> np.ndarray:
    return values.cpu().numpy() if hasattr(values, "cpu") else np.asarray(values)


def resolve_class_ids(model_names: Dict[int, str], wanted: Optional[Sequence[str]]) -> Optional[List[int]]:
    """
    Map class names onto the model's class ids (case-insensitive).

    Returns None (no filtering) when nothing is requested or none of the
    names exist in the model.
    """
    if not wanted:
        return None
    by_name = {str(name).lower(): int(class_id) for class_id, name in model_names.items()}
    ids = sorted({by_name[n.lower()] for n in wanted if n.lower() in by_name})
    missing = sorted({n for n in wanted if n.lower() not in by_name})
    if missing:
        logging.warning(f"Object model has no classes named {missing}; they will never be detected")
    return ids or None


class UltralyticsCpuBackend(ObjectBackend):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or disable the object family (object.enabled: false)."
            ) from e

        self._model = YOLO(cfg.model)
        self._names: Dict[int, str] = dict(getattr(self._model, "names", None) or {})
        self.class_ids = resolve_class_ids(self._names, cfg.tracked_names)
        logging.info(f"Object model {cfg.model} loaded (class ids: {self.class_ids or 'all'})")

    def detect(self, frame: np.ndarray) -> List[Detection]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            classes=self.class_ids,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []
        names = getattr(r0, "names", None) or self._names

        detections: List[Detection] = []
        for (x1, y1, x2, y2), score, k in zip(_to_numpy(boxes.xyxy), _to_numpy(boxes.conf), _to_numpy(boxes.cls)):
            class_id = int(k)
            detections.append(
                Detection(
                    x1=float(x1),
                    y1=float(y1),
                    x2=float(x2),
                    y2=float(y2),
                    confidence=float(score),
                    class_id=class_id,
                    class_name=names.get(class_id, str(class_id)),
                )
            )
        return detections
