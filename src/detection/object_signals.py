"""
Object-family classifier: turns raw detections into distraction labels.

No hysteresis is applied here. Object signals are rare, high-confidence
events and fire on the tick they are seen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

import numpy as np

from inference.backend import Detection, ObjectBackend
from models.signals import ObjectLabel


@dataclass
class ObjectSignalConfig:
    """
    Attributes:
        conf_threshold: Minimum confidence for any detection to count.
        class_thresholds: Per class-name minimum confidence, overriding conf_threshold.
        phone_classes: Class names treated as a handheld device.
        animal_classes: Class names treated as an animal.
        person_classes: Class names counted as people.
    """
    conf_threshold: float = 0.5
    class_thresholds: Dict[str, float] = field(default_factory=dict)
    phone_classes: FrozenSet[str] = frozenset({"cell phone"})
    animal_classes: FrozenSet[str] = frozenset({"cat", "dog"})
    person_classes: FrozenSet[str] = frozenset({"person"})

    @classmethod
    def from_dict(cls, d: Dict) -> "ObjectSignalConfig":
        labels = d.get("labels") or {}

        def names(key: str, default: Iterable[str]) -> FrozenSet[str]:
            value = labels.get(key, default)
            if isinstance(value, str) or not all(isinstance(n, str) for n in value):
                raise ValueError(f"object.labels.{key} must be a list of class names, got {value!r}")
            return frozenset(n.lower() for n in value)

        return cls(
            conf_threshold=float(d.get("conf_threshold", 0.5)),
            class_thresholds={k.lower(): float(v) for k, v in (d.get("class_thresholds") or {}).items()},
            phone_classes=names("handheld_device", ["cell phone"]),
            animal_classes=names("animal", ["cat", "dog"]),
            person_classes=names("extra_person", ["person"]),
        )


class ObjectSignalClassifier:
    """Classify one frame into a set of ObjectLabel values."""

    def __init__(self, config: Optional[ObjectSignalConfig] = None):
        self.config = config or ObjectSignalConfig()

    def _passes(self, det: Detection) -> bool:
        name = (det.class_name or "").lower()
        threshold = self.config.class_thresholds.get(name, self.config.conf_threshold)
        return det.confidence >= threshold

    def labels_from_detections(self, detections: List[Detection]) -> Set[ObjectLabel]:
        cfg = self.config
        kept = [d for d in detections if self._passes(d)]
        names = [(d.class_name or "").lower() for d in kept]

        labels: Set[ObjectLabel] = set()
        if any(n in cfg.phone_classes for n in names):
            labels.add(ObjectLabel.HANDHELD_DEVICE)
        if any(n in cfg.animal_classes for n in names):
            labels.add(ObjectLabel.ANIMAL)
        # The user is one person; anyone beyond that is a distraction.
        if sum(1 for n in names if n in cfg.person_classes) > 1:
            labels.add(ObjectLabel.EXTRA_PERSON)
        return labels

    def classify(self, backend: ObjectBackend, frame: np.ndarray) -> Set[ObjectLabel]:
        return self.labels_from_detections(backend.detect(frame))

    def relevant(self, detections: List[Detection]) -> List[Detection]:
        """Detections that passed thresholds and belong to a tracked class (for overlays)."""
        cfg = self.config
        tracked = cfg.phone_classes | cfg.animal_classes | cfg.person_classes
        return [d for d in detections if self._passes(d) and (d.class_name or "").lower() in tracked]
