"""
Typed models for the distraction monitor.

Frames, per-tick signals, the verdict handed to hosts, errors, and the
typed view of the YAML configuration.
"""

from .frame import FrameData
from .signals import Family, ObjectLabel, FaceSignal, FaceSignals, SignalCounters
from .verdict import DistractionKind, DistractionVerdict, DEFAULT_MESSAGES, build_message_catalog
from .errors import DistractionMonitorError, DeviceUnavailable, ModelLoadError, InferenceError
from .config import (
    Config,
    CameraConfig,
    SchedulerConfig,
    ObjectConfig,
    FaceConfig,
    HysteresisConfig,
    AlertsConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Signals
    "Family",
    "ObjectLabel",
    "FaceSignal",
    "FaceSignals",
    "SignalCounters",
    # Verdict
    "DistractionKind",
    "DistractionVerdict",
    "DEFAULT_MESSAGES",
    "build_message_catalog",
    # Errors
    "DistractionMonitorError",
    "DeviceUnavailable",
    "ModelLoadError",
    "InferenceError",
    # Config
    "Config",
    "CameraConfig",
    "SchedulerConfig",
    "ObjectConfig",
    "FaceConfig",
    "HysteresisConfig",
    "AlertsConfig",
    "WebConfig",
]
