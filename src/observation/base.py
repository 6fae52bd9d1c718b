"""
FrameSource interface for the live camera feed.

The detection engine never talks to a camera directly. It acquires a
FrameSource when a session starts, polls `latest()` from its timers, and
releases the source on every exit path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.frame import FrameData


@dataclass
class SourceConfig:
    """
    Base configuration for frame sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "webcam").
        resolution: Target resolution as (width, height). None = use device default.
        fps: Target frames per second. None = use device default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class FrameSource(ABC):
    """
    Abstract base class for frame sources.

    Lifecycle:
        1. Create instance with config
        2. `await acquire()` to take the device (fails fast with DeviceUnavailable)
        3. Call latest() from any number of consumers
        4. Call release() to give the device back

    Can also be used as an async context manager:
        async with OpenCVSource(config) as source:
            frame_data = source.latest()
    """

    def __init__(self, config: SourceConfig):
        self._config = config
        self._is_acquired = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_acquired(self) -> bool:
        """Whether the device is currently held by this source."""
        return self._is_acquired

    @property
    def healthy(self) -> bool:
        """False once an acquired source has lost its device."""
        return self._is_acquired

    @property
    def frame_index(self) -> int:
        """Number of frames produced since acquire()."""
        return self._frame_index

    @abstractmethod
    async def acquire(self) -> None:
        """
        Take the device and start producing frames.

        No-op if already acquired. Must not retry: an unavailable device
        is reported immediately.

        Raises:
            DeviceUnavailable: If the device cannot be opened or yields no frames.
        """

    @abstractmethod
    def latest(self) -> Optional[FrameData]:
        """
        Return the most recent frame without blocking.

        Returns None before the first frame arrives or after release().
        """

    @abstractmethod
    def release(self) -> None:
        """
        Stop every underlying track and detach consumers.

        Synchronous and idempotent: safe to call multiple times, and safe
        to call on a source that was never acquired.
        """

    async def __aenter__(self) -> "FrameSource":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
