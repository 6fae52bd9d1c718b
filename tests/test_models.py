"""
Tests for the data models.
"""

import time
from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from models import (
    Config,
    DistractionKind,
    DistractionVerdict,
    FrameData,
    HysteresisConfig,
    ModelLoadError,
    SignalCounters,
)
from models.signals import FaceSignal
from models.verdict import DEFAULT_MESSAGES, build_message_catalog


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        fd = FrameData.from_numpy(frame, timestamp=time.time(), frame_index=3, source="webcam")
        assert fd.size == (640, 480)
        assert fd.frame_index == 3
        assert fd.source == "webcam"
        assert fd.has_dimensions

    def test_zero_sized_frame(self):
        fd = FrameData.from_numpy(np.zeros((0, 0, 3), dtype=np.uint8), timestamp=0.0)
        assert fd.has_dimensions is False


class TestDistractionVerdict:
    def test_none(self):
        verdict = DistractionVerdict.none()
        assert verdict.distracted is False
        assert verdict.kind == DistractionKind.NONE
        assert verdict.message == ""

    @pytest.mark.parametrize("kind", [k for k in DistractionKind if k != DistractionKind.NONE])
    def test_every_kind_is_distracted_with_message(self, kind):
        verdict = DistractionVerdict.of(kind)
        assert verdict.distracted is True
        assert verdict.message == DEFAULT_MESSAGES[kind]
        assert verdict.message

    def test_of_none_kind(self):
        assert DistractionVerdict.of(DistractionKind.NONE) == DistractionVerdict.none()

    def test_to_dict(self):
        d = DistractionVerdict.of(DistractionKind.MULTIPLE_PEOPLE).to_dict()
        assert d["distracted"] is True
        assert d["kind"] == "multiple_people"

    def test_frozen(self):
        verdict = DistractionVerdict.none()
        with pytest.raises(FrozenInstanceError):
            verdict.kind = DistractionKind.PHONE


class TestMessageCatalog:
    def test_overrides(self):
        catalog = build_message_catalog({"eyes_closed": "Wake up"})
        assert catalog[DistractionKind.EYES_CLOSED] == "Wake up"
        assert catalog[DistractionKind.PHONE] == DEFAULT_MESSAGES[DistractionKind.PHONE]

    def test_empty_override_keeps_default(self):
        catalog = build_message_catalog({"pet": ""})
        assert catalog[DistractionKind.PET] == DEFAULT_MESSAGES[DistractionKind.PET]

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="snacking"):
            build_message_catalog({"snacking": "..."})


class TestSignalCounters:
    def test_get_set(self):
        counters = SignalCounters()
        counters.set(FaceSignal.LOOKING_AWAY, 2)
        assert counters.get(FaceSignal.LOOKING_AWAY) == 2
        assert counters.to_dict() == {"no_face": 0, "looking_away": 2, "eyes_closed": 0}


class TestConfigModel:
    def test_defaults(self):
        cfg = Config()
        assert cfg.scheduler.interval_s == 0.5
        assert cfg.hysteresis.to_dict() == {"no_face": 5, "looking_away": 3, "eyes_closed": 5}
        assert cfg.face.eye_closed_ratio == 0.268

    def test_round_trip(self, valid_config):
        cfg = Config.from_dict(valid_config)
        again = Config.from_dict(cfg.to_dict())
        assert again == cfg
        assert again.object.class_thresholds == {"cell phone": 0.4}

    def test_hysteresis_threshold_lookup(self):
        cfg = HysteresisConfig(no_face=7)
        assert cfg.threshold(FaceSignal.NO_FACE) == 7
        assert cfg.threshold(FaceSignal.LOOKING_AWAY) == 3

    def test_object_labels_merge_defaults(self):
        cfg = Config.from_dict({"object": {"labels": {"animal": ["cat"]}}})
        assert cfg.object.labels["animal"] == ["cat"]
        assert cfg.object.labels["handheld_device"] == ["cell phone"]


class TestErrors:
    def test_model_load_error(self):
        err = ModelLoadError("face", "predictor missing")
        assert err.family == "face"
        assert err.reason == "predictor missing"
        assert "face" in str(err)
