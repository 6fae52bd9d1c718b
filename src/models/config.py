"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    flip_horizontal: bool = False
    rotate: int = 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            flip_horizontal=d.get("flip_horizontal", False),
            rotate=d.get("rotate", 0) or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "flip_horizontal": self.flip_horizontal,
            "rotate": self.rotate,
        }


@dataclass
class SchedulerConfig:
    """Polling cadence for the two classifier families."""
    interval_s: float = 0.5
    face_start_delay_s: float = 0.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SchedulerConfig":
        return cls(
            interval_s=float(d.get("interval_s", 0.5)),
            face_start_delay_s=float(d.get("face_start_delay_s", 0.5)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interval_s": self.interval_s,
            "face_start_delay_s": self.face_start_delay_s,
        }


@dataclass
class ObjectConfig:
    """
    Object-family configuration (YOLO on COCO labels).

    Attributes:
        labels: Maps each ObjectLabel value to the backend class names that trigger it.
        class_thresholds: Per class-name minimum confidence, overriding conf_threshold.
    """
    enabled: bool = True
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    class_thresholds: Optional[Dict[str, float]] = None
    labels: Dict[str, List[str]] = field(default_factory=lambda: {
        "handheld_device": ["cell phone"],
        "animal": ["cat", "dog"],
        "extra_person": ["person"],
    })

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ObjectConfig":
        defaults = cls()
        return cls(
            enabled=d.get("enabled", True),
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=float(d.get("conf_threshold", 0.5)),
            iou_threshold=float(d.get("iou_threshold", 0.45)),
            class_thresholds=d.get("class_thresholds"),
            labels={**defaults.labels, **(d.get("labels") or {})},
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "enabled": self.enabled,
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
            "labels": self.labels,
        }
        if self.class_thresholds is not None:
            d["class_thresholds"] = self.class_thresholds
        return d


@dataclass
class FaceConfig:
    """
    Face-family configuration (dlib 68-point landmarks).

    Attributes:
        predictor_path: Path to shape_predictor_68_face_landmarks.dat.
        expression_model: Optional FER+ ONNX model providing the "happy" score.
        upsample: dlib detector upsample count (higher finds smaller faces).
        looking_away_ratio: Nose deviation, as a fraction of face width, that counts as looking away.
        eye_closed_ratio: Eye height/width ratio below which an eye counts as closed.
        happy_threshold: "happy" score above which eyes count as closed.
    """
    enabled: bool = True
    predictor_path: str = "models/shape_predictor_68_face_landmarks.dat"
    expression_model: Optional[str] = None
    upsample: int = 0
    looking_away_ratio: float = 0.2
    eye_closed_ratio: float = 0.268
    happy_threshold: float = 0.9

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FaceConfig":
        return cls(
            enabled=d.get("enabled", True),
            predictor_path=d.get("predictor_path", "models/shape_predictor_68_face_landmarks.dat"),
            expression_model=d.get("expression_model"),
            upsample=int(d.get("upsample", 0)),
            looking_away_ratio=float(d.get("looking_away_ratio", 0.2)),
            eye_closed_ratio=float(d.get("eye_closed_ratio", 0.268)),
            happy_threshold=float(d.get("happy_threshold", 0.9)),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "enabled": self.enabled,
            "predictor_path": self.predictor_path,
            "upsample": self.upsample,
            "looking_away_ratio": self.looking_away_ratio,
            "eye_closed_ratio": self.eye_closed_ratio,
            "happy_threshold": self.happy_threshold,
        }
        if self.expression_model is not None:
            d["expression_model"] = self.expression_model
        return d


@dataclass
class HysteresisConfig:
    """Consecutive ticks required before a face signal reaches threshold."""
    no_face: int = 5
    looking_away: int = 3
    eyes_closed: int = 5

    def threshold(self, signal) -> int:
        """Threshold for a FaceSignal (matched by its value)."""
        return getattr(self, signal.value)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HysteresisConfig":
        return cls(
            no_face=int(d.get("no_face", 5)),
            looking_away=int(d.get("looking_away", 3)),
            eyes_closed=int(d.get("eyes_closed", 5)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "no_face": self.no_face,
            "looking_away": self.looking_away,
            "eyes_closed": self.eyes_closed,
        }


@dataclass
class AlertsConfig:
    """Host-side alert presentation."""
    sound: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AlertsConfig":
        return cls(sound=d.get("sound", True))

    def to_dict(self) -> Dict[str, Any]:
        return {"sound": self.sound}


@dataclass
class WebConfig:
    """Control API bind address."""
    host: str = "127.0.0.1"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "127.0.0.1"), port=int(d.get("port", 5000)))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    object: ObjectConfig = field(default_factory=ObjectConfig)
    face: FaceConfig = field(default_factory=FaceConfig)
    hysteresis: HysteresisConfig = field(default_factory=HysteresisConfig)
    messages: Dict[str, str] = field(default_factory=dict)
    alerts: AlertsConfig = field(default_factory=AlertsConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/distraction_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            scheduler=SchedulerConfig.from_dict(d.get("scheduler", {}) or {}),
            object=ObjectConfig.from_dict(d.get("object", {}) or {}),
            face=FaceConfig.from_dict(d.get("face", {}) or {}),
            hysteresis=HysteresisConfig.from_dict(d.get("hysteresis", {}) or {}),
            messages=dict(d.get("messages", {}) or {}),
            alerts=AlertsConfig.from_dict(d.get("alerts", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/distraction_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "camera": self.camera.to_dict(),
            "scheduler": self.scheduler.to_dict(),
            "object": self.object.to_dict(),
            "face": self.face.to_dict(),
            "hysteresis": self.hysteresis.to_dict(),
            "messages": dict(self.messages),
            "alerts": self.alerts.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
