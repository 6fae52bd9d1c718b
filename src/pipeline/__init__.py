"""
Pipeline module for the distraction monitor.

The pipeline orchestrates one detection session:
- Camera acquisition and release
- Two independent skip-if-busy polling timers (object, face)
- Hysteresis and verdict resolution
- Verdict notifications and the preview overlay
"""

from .periodic import PeriodicTask
from .scheduler import (
    DetectionScheduler,
    EngineSnapshot,
    EngineState,
    Session,
    create_scheduler_from_config,
)

__all__ = [
    "PeriodicTask",
    "DetectionScheduler",
    "EngineSnapshot",
    "EngineState",
    "Session",
    "create_scheduler_from_config",
]
