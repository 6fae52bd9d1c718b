"""
OpenCV-based webcam frame source.

Opens the device off the event loop, then keeps a background grabber
thread reading frames so that classifiers always see the newest frame
without blocking on cv2.VideoCapture.read().
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import cv2
import numpy as np

from models.errors import DeviceUnavailable
from models.frame import FrameData
from .base import FrameSource, SourceConfig


@dataclass
class OpenCVSourceConfig(SourceConfig):
    """
    Configuration for the OpenCV webcam source.

    Attributes:
        device_id: Camera index (int) or capture URL/path (str).
        buffer_size: OpenCV capture buffer size (keeps latency low).
        max_read_failures: Consecutive failed reads before the source reports itself unhealthy.
        flip_horizontal: Mirror the frame (selfie view).
        rotate: Rotation in degrees (0, 90, 180, 270).
        release_timeout_s: How long release() waits for the grabber thread.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_read_failures: int = 30
    flip_horizontal: bool = False
    rotate: int = 0
    release_timeout_s: float = 0.25

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "webcam") -> "OpenCVSourceConfig":
        """
        Adapter: Create OpenCVSourceConfig from the camera section of config.yaml.

        Args:
            camera_cfg: Camera configuration dict.
            source_id: Identifier for this source.
        """
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_read_failures=camera_cfg.get("max_read_failures", 30),
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            rotate=camera_cfg.get("rotate", 0) or 0,
            release_timeout_s=camera_cfg.get("release_timeout_s", 0.25),
        )


class OpenCVSource(FrameSource):
    """
    Webcam source backed by cv2.VideoCapture.

    Example:
        source = OpenCVSource(OpenCVSourceConfig(device_id=0, resolution=(640, 480)))
        await source.acquire()
        frame_data = source.latest()
        source.release()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self._latest: Optional[FrameData] = None
        self._stop_event = threading.Event()
        self._grabber: Optional[threading.Thread] = None
        self._healthy = False

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def healthy(self) -> bool:
        return self._is_acquired and self._healthy

    async def acquire(self) -> None:
        """Open the device and start the grabber thread."""
        if self._is_acquired:
            return

        cap, first = await asyncio.to_thread(self._open_device)

        self._cap = cap
        self._frame_index = 0
        self._store(first)
        # One stop event per grabber thread.
        self._stop_event = threading.Event()
        self._healthy = True
        self._is_acquired = True
        self._grabber = threading.Thread(
            target=self._grab_loop,
            args=(cap, self._stop_event),
            name=f"frame-grabber-{self.source_id}",
            daemon=True,
        )
        self._grabber.start()

        logging.info(
            f"OpenCVSource acquired: source_id={self.source_id}, "
            f"device={self.device_id}, resolution={self._opencv_config.resolution}"
        )

    def _open_device(self) -> Tuple[cv2.VideoCapture, np.ndarray]:
        """Open the capture device once. Runs in a worker thread."""
        cap = cv2.VideoCapture(self.device_id)
        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailable(f"Failed to open camera device {self.device_id}")

        if self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        if self._opencv_config.fps:
            cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)

        ret, frame = cap.read()
        if not ret or frame is None:
            cap.release()
            raise DeviceUnavailable(f"Camera device {self.device_id} opened but produced no frames")

        logging.info(
            f"Camera actual settings - Resolution: "
            f"({cap.get(cv2.CAP_PROP_FRAME_WIDTH)}x{cap.get(cv2.CAP_PROP_FRAME_HEIGHT)}), "
            f"FPS: {cap.get(cv2.CAP_PROP_FPS)}"
        )
        return cap, frame

    def _grab_loop(self, cap: cv2.VideoCapture, stop_event: threading.Event) -> None:
        """Read frames until stopped or the stream dies. Owns `cap` and releases it on exit."""
        failures = 0
        try:
            while not stop_event.is_set():
                ret, frame = cap.read()
                if stop_event.is_set():
                    break
                if not ret or frame is None:
                    failures += 1
                    if failures >= self._opencv_config.max_read_failures:
                        logging.error(
                            f"Camera {self.device_id} lost after {failures} consecutive read failures"
                        )
                        self._healthy = False
                        break
                    time.sleep(0.05)
                    continue
                failures = 0
                self._store(frame)
        finally:
            cap.release()

    def _store(self, frame: np.ndarray) -> None:
        frame = self._apply_transforms(frame)
        with self._lock:
            self._frame_index += 1
            self._latest = FrameData.from_numpy(
                frame,
                timestamp=time.time(),
                frame_index=self._frame_index,
                source=self.source_id,
            )

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        """Apply configured image transforms (rotate, mirror)."""
        cfg = self._opencv_config

        if cfg.rotate == 90:
            frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.rotate == 180:
            frame = cv2.rotate(frame, cv2.ROTATE_180)
        elif cfg.rotate == 270:
            frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal:
            frame = cv2.flip(frame, 1)

        return frame

    def latest(self) -> Optional[FrameData]:
        with self._lock:
            return self._latest

    def release(self) -> None:
        """
        Stop the grabber thread and release the device.

        Waits at most `release_timeout_s` for the grabber. A grabber still
        blocked in read() releases the capture itself when read() returns.
        """
        self._stop_event.set()
        grabber, self._grabber = self._grabber, None
        cap, self._cap = self._cap, None
        if grabber is not None:
            if grabber is not threading.current_thread():
                grabber.join(timeout=self._opencv_config.release_timeout_s)
                if grabber.is_alive():
                    logging.warning(
                        f"Frame grabber for {self.source_id} still reading; "
                        f"the device is released when the read returns"
                    )
        elif cap is not None:
            cap.release()

        with self._lock:
            self._latest = None

        if self._is_acquired:
            logging.info(f"OpenCVSource released: source_id={self.source_id}")
        self._is_acquired = False
        self._healthy = False


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "webcam") -> FrameSource:
    """Factory: build the frame source described by the camera config section."""
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
