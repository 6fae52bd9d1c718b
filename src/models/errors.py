"""
Exception taxonomy for the detection engine.
"""

from __future__ import annotations


class DistractionMonitorError(Exception):
    """Base class for errors raised by the detection engine."""


class DeviceUnavailable(DistractionMonitorError):
    """Camera permission denied, device missing or busy. Never retried."""


class ModelLoadError(DistractionMonitorError):
    """A classifier backend failed to initialize. Never retried for that family."""

    def __init__(self, family: str, reason: str = ""):
        self.family = family
        self.reason = reason
        message = f"Failed to load {family} model"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InferenceError(DistractionMonitorError):
    """A single classification tick failed. Recovered locally by the scheduler."""
