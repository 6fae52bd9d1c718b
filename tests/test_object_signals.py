"""
Tests for the object-family classifier.
"""

import numpy as np
import pytest

from detection.object_signals import ObjectSignalClassifier, ObjectSignalConfig
from inference.backend import Detection
from models.signals import ObjectLabel


def det(name, conf=0.9):
    return Detection(x1=0, y1=0, x2=10, y2=10, confidence=conf, class_name=name)


class StubObjectBackend:
    def __init__(self, detections):
        self.detections = detections

    def detect(self, frame):
        return self.detections


class TestObjectSignalConfig:
    def test_defaults(self):
        cfg = ObjectSignalConfig()
        assert "cell phone" in cfg.phone_classes
        assert cfg.animal_classes == frozenset({"cat", "dog"})
        assert cfg.person_classes == frozenset({"person"})

    def test_from_dict_labels_and_thresholds(self):
        cfg = ObjectSignalConfig.from_dict({
            "conf_threshold": 0.6,
            "class_thresholds": {"Cell Phone": 0.3},
            "labels": {"animal": ["Cat", "bird"]},
        })
        assert cfg.conf_threshold == 0.6
        assert cfg.class_thresholds == {"cell phone": 0.3}
        assert cfg.animal_classes == frozenset({"cat", "bird"})
        # Unspecified labels keep their defaults
        assert cfg.phone_classes == frozenset({"cell phone"})

    def test_string_label_value_rejected(self):
        """A bare string is not split into single-character class names."""
        with pytest.raises(ValueError, match="handheld_device"):
            ObjectSignalConfig.from_dict({"labels": {"handheld_device": "cell phone"}})


class TestObjectSignalClassifier:
    def test_no_detections(self):
        assert ObjectSignalClassifier().labels_from_detections([]) == set()

    def test_phone(self):
        labels = ObjectSignalClassifier().labels_from_detections([det("cell phone")])
        assert labels == {ObjectLabel.HANDHELD_DEVICE}

    def test_cat_and_dog_are_animals(self):
        clf = ObjectSignalClassifier()
        assert clf.labels_from_detections([det("cat")]) == {ObjectLabel.ANIMAL}
        assert clf.labels_from_detections([det("dog")]) == {ObjectLabel.ANIMAL}

    def test_single_person_is_the_user(self):
        labels = ObjectSignalClassifier().labels_from_detections([det("person")])
        assert labels == set()

    def test_two_people(self):
        labels = ObjectSignalClassifier().labels_from_detections([det("person"), det("person")])
        assert labels == {ObjectLabel.EXTRA_PERSON}

    def test_all_labels_at_once(self):
        labels = ObjectSignalClassifier().labels_from_detections(
            [det("person"), det("person"), det("dog"), det("cell phone")]
        )
        assert labels == {ObjectLabel.HANDHELD_DEVICE, ObjectLabel.ANIMAL, ObjectLabel.EXTRA_PERSON}

    def test_low_confidence_ignored(self):
        labels = ObjectSignalClassifier().labels_from_detections([det("dog", conf=0.3)])
        assert labels == set()

    def test_low_confidence_person_not_counted(self):
        labels = ObjectSignalClassifier().labels_from_detections(
            [det("person", 0.9), det("person", 0.2)]
        )
        assert labels == set()

    def test_class_threshold_override(self):
        clf = ObjectSignalClassifier(ObjectSignalConfig(class_thresholds={"cell phone": 0.3}))
        assert clf.labels_from_detections([det("cell phone", 0.35)]) == {ObjectLabel.HANDHELD_DEVICE}
        assert clf.labels_from_detections([det("dog", 0.35)]) == set()

    def test_class_names_are_case_insensitive(self):
        labels = ObjectSignalClassifier().labels_from_detections([det("Cell Phone")])
        assert labels == {ObjectLabel.HANDHELD_DEVICE}

    def test_unrelated_classes_ignored(self):
        labels = ObjectSignalClassifier().labels_from_detections([det("laptop"), det("cup")])
        assert labels == set()

    def test_classify_runs_backend(self):
        frame = np.zeros((10, 10, 3), dtype=np.uint8)
        backend = StubObjectBackend([det("cat")])
        assert ObjectSignalClassifier().classify(backend, frame) == {ObjectLabel.ANIMAL}

    def test_relevant_filters_for_overlay(self):
        detections = [det("person"), det("laptop"), det("cat", 0.1)]
        relevant = ObjectSignalClassifier().relevant(detections)
        assert [d.class_name for d in relevant] == ["person"]
