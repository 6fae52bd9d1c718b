"""
Observation layer: the live camera feed behind the FrameSource interface.

The detection engine only sees FrameSource, so tests and alternative
devices plug in without touching the scheduler.
"""

from .base import FrameSource, SourceConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config

__all__ = [
    "FrameSource",
    "SourceConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
