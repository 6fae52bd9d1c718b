"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

scheduler:
  interval_s: 0.5
  face_start_delay_s: 0.5

object:
  enabled: true
  model: "yolov8n.pt"
  conf_threshold: 0.5

face:
  enabled: true
  predictor_path: "models/shape_predictor_68_face_landmarks.dat"

hysteresis:
  no_face: 5
  looking_away: 3
  eyes_closed: 5

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [640, 480],
            "fps": 30,
        },
        "scheduler": {
            "interval_s": 0.5,
            "face_start_delay_s": 0.5,
        },
        "object": {
            "enabled": True,
            "model": "yolov8n.pt",
            "conf_threshold": 0.5,
            "class_thresholds": {"cell phone": 0.4},
        },
        "face": {
            "enabled": True,
            "predictor_path": "models/shape_predictor_68_face_landmarks.dat",
        },
        "hysteresis": {
            "no_face": 5,
            "looking_away": 3,
            "eyes_closed": 5,
        },
        "messages": {},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def make_landmarks():
    """
    Factory for a synthetic 68-point face.

    Jaw spans x=100..200 (face width 100, midline 150). Each eye is 20 px
    wide, so the eye ratio equals eye_height / 20.
    """

    def _make(nose_offset: float = 0.0, eye_height: float = 8.0,
              right_eye_height: float = None) -> np.ndarray:
        pts = np.zeros((68, 2), dtype=float)
        for i in range(17):
            pts[i] = (100 + i * 100 / 16, 150 + abs(8 - i) * -3)
        for i in range(27, 36):
            pts[i] = (150, 110 + (i - 27) * 4)
        pts[33] = (150 + nose_offset, 140)

        def eye(start: int, x0: float, h: float) -> None:
            half = h / 2
            pts[start + 0] = (x0, 100)
            pts[start + 1] = (x0 + 5, 100 - half)
            pts[start + 2] = (x0 + 15, 100 - half)
            pts[start + 3] = (x0 + 20, 100)
            pts[start + 4] = (x0 + 15, 100 + half)
            pts[start + 5] = (x0 + 5, 100 + half)

        eye(36, 115, eye_height)
        eye(42, 165, eye_height if right_eye_height is None else right_eye_height)
        return pts

    return _make
