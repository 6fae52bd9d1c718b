"""
DetectionScheduler: the distraction detection engine.

Owns the camera session and both classifier timers, feeds classifier
output through the hysteresis engine, and notifies listeners whenever the
verdict's kind changes.

States:
    idle -> starting -> running -> stopping -> idle
    running -> failed -> idle   (camera lost, or every model failed to load)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

import numpy as np

from analytics.hysteresis import HysteresisEngine
from detection.face_signals import FaceSignalClassifier, FaceSignalConfig
from detection.object_signals import ObjectSignalClassifier, ObjectSignalConfig
from inference.backend import Detection
from inference.registry import ModelReadiness, ModelRegistry, create_registry_from_config
from models.config import HysteresisConfig, SchedulerConfig
from models.errors import InferenceError, ModelLoadError
from models.frame import FrameData
from models.signals import Family, FaceSignals, ObjectLabel
from models.verdict import DistractionVerdict, build_message_catalog
from observation.base import FrameSource
from observation.opencv_source import create_source_from_config
from .overlay import draw_overlay
from .periodic import PeriodicTask

VerdictListener = Callable[[DistractionVerdict], None]


class EngineState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    FAILED = "failed"


@dataclass
class Session:
    """
    One live detection run.

    Attributes:
        source: The acquired frame source (exclusively owned).
        active: False once the session is torn down; late tick results check it.
        timers: Periodic tasks keyed by family.
        started_at: Unix timestamp of start().
    """
    source: FrameSource
    active: bool = True
    timers: Dict[Family, PeriodicTask] = field(default_factory=dict)
    started_at: float = field(default_factory=time.time)


@dataclass
class EngineSnapshot:
    """Read model for hosts that poll for display state."""
    state: EngineState
    verdict: DistractionVerdict
    counters: Dict[str, int]
    face_found: bool
    object_labels: List[str]
    readiness: Dict[str, str]
    enabled: List[str]
    skipped_ticks: Dict[str, int]
    uptime_seconds: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "verdict": self.verdict.to_dict(),
            "counters": dict(self.counters),
            "face_found": self.face_found,
            "object_labels": list(self.object_labels),
            "readiness": dict(self.readiness),
            "enabled": list(self.enabled),
            "skipped_ticks": dict(self.skipped_ticks),
            "uptime_seconds": self.uptime_seconds,
        }


class DetectionScheduler:
    """
    Multi-signal distraction detection engine.

    Example:
        engine = create_scheduler_from_config(config)
        engine.on_verdict_change(lambda v: print(v.kind, v.message))
        await engine.start()
        ...
        engine.stop()
    """

    def __init__(
        self,
        source_factory: Callable[[], FrameSource],
        registry: ModelRegistry,
        object_classifier: Optional[ObjectSignalClassifier] = None,
        face_classifier: Optional[FaceSignalClassifier] = None,
        hysteresis: Optional[HysteresisEngine] = None,
        config: Optional[SchedulerConfig] = None,
        draw_overlays: bool = True,
    ):
        self._source_factory = source_factory
        self._registry = registry
        self._object_classifier = object_classifier or ObjectSignalClassifier()
        self._face_classifier = face_classifier or FaceSignalClassifier()
        self._hysteresis = hysteresis or HysteresisEngine()
        self.config = config or SchedulerConfig()
        self.draw_overlays = draw_overlays

        self._state = EngineState.IDLE
        self._session: Optional[Session] = None
        self._listeners: List[VerdictListener] = []
        self._verdict = DistractionVerdict.none()
        self._object_labels: Set[ObjectLabel] = set()
        self._object_detections: List[Detection] = []
        self._face: Optional[FaceSignals] = None
        self._overlay: Optional[np.ndarray] = None
        self._load_tasks: Set[asyncio.Future] = set()
        self._start_task: Optional[asyncio.Future] = None

    # ------------------------------------------------------------------
    # Host contract
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def verdict(self) -> DistractionVerdict:
        return self._verdict

    @property
    def overlay(self) -> Optional[np.ndarray]:
        """Latest annotated preview frame, None when not running."""
        return self._overlay

    @property
    def enabled_families(self) -> List[Family]:
        return [f for f in (Family.OBJECT, Family.FACE) if self._registry.has_family(f)]

    def on_verdict_change(self, listener: VerdictListener) -> VerdictListener:
        """Register a listener called whenever the verdict's kind changes."""
        self._listeners.append(listener)
        return listener

    def remove_listener(self, listener: VerdictListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def start(self) -> bool:
        """
        Start a detection session.

        Returns True once running. Returns False (never raises) when the
        camera cannot be acquired or no classifier family can run. A start
        while another start is in flight waits for that start's outcome; a
        start while running is a no-op.
        """
        if self._state == EngineState.STARTING and self._start_task is not None:
            return await asyncio.shield(self._start_task)
        if self._state != EngineState.IDLE:
            logging.debug(f"start() ignored in state {self._state.value}")
            return self._state == EngineState.RUNNING

        pending = self._start_task
        if pending is not None and not pending.done():
            # A stopped start still owns the camera until its acquire settles.
            logging.debug("Waiting for the previous camera acquisition to be released")
            await asyncio.shield(pending)
            return await self.start()

        families = self.enabled_families
        if not families or all(
            self._registry.readiness(f) == ModelReadiness.FAILED for f in families
        ):
            logging.error("No classifier family can run; not starting")
            self._emit(DistractionVerdict.none(), force=True)
            return False

        self._state = EngineState.STARTING
        session = Session(source=self._source_factory())
        self._session = session
        task = asyncio.ensure_future(self._run_session_start(session, families))
        self._start_task = task
        return await asyncio.shield(task)

    async def _run_session_start(self, session: Session, families: List[Family]) -> bool:
        try:
            await session.source.acquire()
        except Exception as e:
            logging.error(f"Error starting webcam: {e}")
            session.source.release()
            if self._session is session:
                self._session = None
                self._state = EngineState.IDLE
                self._emit(DistractionVerdict.none(), force=True)
            return False

        if not session.active:
            # stop() arrived while the camera was being acquired.
            session.source.release()
            return False

        for family in families:
            self._ensure_loaded(family)

        interval = self.config.interval_s
        if Family.OBJECT in families:
            session.timers[Family.OBJECT] = PeriodicTask(
                "object", lambda: self._object_tick(session), interval
            )
        if Family.FACE in families:
            session.timers[Family.FACE] = PeriodicTask(
                "face",
                lambda: self._face_tick(session),
                interval,
                initial_delay_s=self.config.face_start_delay_s,
            )
        for timer in session.timers.values():
            timer.start()

        self._state = EngineState.RUNNING
        logging.info(
            f"Distraction detection started: families={[f.value for f in families]}, "
            f"interval={interval}s"
        )
        return True

    def stop(self) -> None:
        """
        Stop the session synchronously.

        Clears both timers, releases the camera, clears the overlay, resets
        all counters and emits the terminal `none` verdict. Outstanding
        inference results are discarded when they arrive.
        """
        if self._state in (EngineState.IDLE, EngineState.STOPPING):
            return
        self._state = EngineState.STOPPING
        try:
            self._teardown()
        finally:
            self._state = EngineState.IDLE
        logging.info("Distraction detection stopped")

    def shutdown(self) -> None:
        """Stop and drop the loaded models (host unmount)."""
        try:
            self.stop()
        finally:
            for task in list(self._load_tasks):
                task.cancel()
            self._load_tasks.clear()
            self._registry.close()

    def snapshot(self) -> EngineSnapshot:
        counters = self._hysteresis.counters().to_dict()
        session = self._session
        skipped = {}
        uptime = None
        if session is not None:
            skipped = {f.value: t.skipped for f, t in session.timers.items()}
            uptime = time.time() - session.started_at
        return EngineSnapshot(
            state=self._state,
            verdict=self._verdict,
            counters=counters,
            face_found=bool(self._face and self._face.face_found),
            object_labels=sorted(label.value for label in self._object_labels),
            readiness=self._registry.snapshot(),
            enabled=[f.value for f in self.enabled_families],
            skipped_ticks=skipped,
            uptime_seconds=uptime,
        )

    # ------------------------------------------------------------------
    # Lifecycle internals
    # ------------------------------------------------------------------

    def _teardown(self) -> None:
        session, self._session = self._session, None
        try:
            if session is not None:
                session.active = False
                for timer in session.timers.values():
                    timer.cancel()
        finally:
            try:
                if session is not None:
                    session.source.release()
            finally:
                self._overlay = None
                self._object_labels = set()
                self._object_detections = []
                self._face = None
                self._hysteresis.reset_all()
                self._emit(DistractionVerdict.none(), force=True)

    def _fail(self, reason: str) -> None:
        if self._state != EngineState.RUNNING:
            return
        self._state = EngineState.FAILED
        logging.error(f"Distraction detection failed: {reason}")
        try:
            self._teardown()
        finally:
            self._state = EngineState.IDLE

    def _ensure_loaded(self, family: Family) -> None:
        if self._registry.readiness(family) != ModelReadiness.UNLOADED:
            return
        task = asyncio.ensure_future(self._load_family(family))
        self._load_tasks.add(task)
        task.add_done_callback(self._load_tasks.discard)

    async def _load_family(self, family: Family) -> None:
        try:
            await self._registry.load(family)
        except ModelLoadError as e:
            logging.error(f"{e}; {family.value} detection disabled for this engine")
            if all(
                self._registry.readiness(f) == ModelReadiness.FAILED
                for f in self.enabled_families
            ):
                self._fail("every classifier model failed to load")

    def _tick_allowed(self, session: Session, family: Family) -> bool:
        if not session.active or session is not self._session:
            return False
        if self._state != EngineState.RUNNING:
            return False
        if not session.source.healthy:
            self._fail("camera stream lost")
            return False
        return self._registry.is_ready(family)

    @staticmethod
    def _usable(frame_data: Optional[FrameData]) -> bool:
        return frame_data is not None and frame_data.has_dimensions

    async def _infer(self, family: Family, fn: Callable, *args) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            raise InferenceError(f"{family.value} inference failed: {e}") from e

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def _object_tick(self, session: Session) -> None:
        if not self._tick_allowed(session, Family.OBJECT):
            return
        frame_data = session.source.latest()
        if not self._usable(frame_data):
            return

        backend = self._registry.backend(Family.OBJECT)
        try:
            detections = await self._infer(Family.OBJECT, backend.detect, frame_data.frame)
        except InferenceError as e:
            logging.warning(f"Object detection error: {e}")
            return

        if not session.active or session is not self._session:
            return

        self._object_labels = self._object_classifier.labels_from_detections(detections)
        self._object_detections = self._object_classifier.relevant(detections)
        self._publish(frame_data)

    async def _face_tick(self, session: Session) -> None:
        if not self._tick_allowed(session, Family.FACE):
            return
        frame_data = session.source.latest()
        if not self._usable(frame_data):
            return

        backend = self._registry.backend(Family.FACE)
        try:
            signals = await self._infer(Family.FACE, self._face_classifier.classify, backend, frame_data)
        except InferenceError as e:
            logging.warning(f"Error detecting faces: {e}")
            return

        if not session.active or session is not self._session or signals is None:
            return

        self._face = signals
        self._hysteresis.apply_face(signals)
        self._publish(frame_data)

    def _publish(self, frame_data: FrameData) -> None:
        # No await between counter update and emission: hosts never see a
        # half-applied tick.
        verdict = self._hysteresis.resolve(self._object_labels)
        if self.draw_overlays:
            self._overlay = draw_overlay(frame_data.frame, self._object_detections, self._face, verdict)
        self._emit(verdict)

    def _emit(self, verdict: DistractionVerdict, force: bool = False) -> None:
        if not force and verdict.kind == self._verdict.kind:
            return
        self._verdict = verdict
        if verdict.distracted:
            logging.info(f"Distraction detected: {verdict.kind.value}")
        for listener in list(self._listeners):
            try:
                listener(verdict)
            except Exception as e:
                logging.warning(f"Verdict listener error: {e}")


def create_scheduler_from_config(config: Dict[str, Any]) -> DetectionScheduler:
    """
    Factory function to create a DetectionScheduler from the config dict.

    Args:
        config: Full application config dict (see config/default.yaml).
    """
    camera_cfg = dict(config.get("camera", {}) or {})
    object_cfg = config.get("object", {}) or {}
    face_cfg = config.get("face", {}) or {}

    hysteresis = HysteresisEngine(
        HysteresisConfig.from_dict(config.get("hysteresis", {}) or {}),
        messages=build_message_catalog(config.get("messages")),
    )

    return DetectionScheduler(
        source_factory=lambda: create_source_from_config(camera_cfg, source_id="webcam"),
        registry=create_registry_from_config(config),
        object_classifier=ObjectSignalClassifier(ObjectSignalConfig.from_dict(object_cfg)),
        face_classifier=FaceSignalClassifier(FaceSignalConfig.from_dict(face_cfg)),
        hysteresis=hysteresis,
        config=SchedulerConfig.from_dict(config.get("scheduler", {}) or {}),
    )
