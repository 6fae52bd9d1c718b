"""
Distraction monitor: watches the webcam and alerts when attention lapses.

Runs the detection engine on an asyncio event loop, rings an alarm once on
every transition into a distracted state, and optionally serves the
control API and a preview window.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show the annotated preview window ('q' quits)
    --web: Serve the control API instead of starting detection immediately
    --duration: Stop after this many seconds
"""

import os
import sys
import argparse
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import cv2
import uvicorn
import yaml

from ops.logging import setup_logging
from pipeline.scheduler import DetectionScheduler, EngineState, create_scheduler_from_config
from runtime.alerts import AlertPresenter
from runtime.context import RuntimeContext
from web.app import create_app

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_KINDS = ['phone', 'pet', 'multiple_people', 'no_face', 'looking_away', 'eyes_closed']
VALID_OBJECT_LABELS = ['handheld_device', 'animal', 'extra_person']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        local_overrides_path = os.path.join(config_dir, "config.yaml")

        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        explicit = os.path.abspath(config_path)
        if os.path.exists(config_path) and explicit not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'scheduler', 'hysteresis', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera', {}) or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)) or isinstance(camera['device_id'], bool):
        return False, "camera.device_id must be an integer (index) or string (URL)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    resolution = camera.get('resolution')
    if resolution is not None:
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return False, "camera.resolution values must be positive integers"
    fps = camera.get('fps')
    if fps is not None and not _positive_number(fps):
        return False, "camera.fps must be a positive number"
    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Scheduler
    scheduler = config.get('scheduler', {}) or {}
    if 'interval_s' in scheduler and not _positive_number(scheduler['interval_s']):
        return False, "scheduler.interval_s must be a positive number"
    delay = scheduler.get('face_start_delay_s', 0.5)
    if not isinstance(delay, (int, float)) or delay < 0:
        return False, "scheduler.face_start_delay_s must be a non-negative number"

    # Hysteresis thresholds
    hysteresis = config.get('hysteresis', {}) or {}
    for key in ('no_face', 'looking_away', 'eyes_closed'):
        if key in hysteresis:
            value = hysteresis[key]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                return False, f"hysteresis.{key} must be a positive integer"

    # Families
    object_cfg = config.get('object', {}) or {}
    face_cfg = config.get('face', {}) or {}
    if not object_cfg.get('enabled', True) and not face_cfg.get('enabled', True):
        return False, "At least one of object.enabled / face.enabled must be true"
    if object_cfg.get('enabled', True):
        if not isinstance(object_cfg.get('model', 'yolov8n.pt'), str) or not object_cfg.get('model', 'yolov8n.pt'):
            return False, "object.model is required when the object family is enabled"
        conf = object_cfg.get('conf_threshold', 0.5)
        if not isinstance(conf, (int, float)) or not (0 < conf <= 1):
            return False, "object.conf_threshold must be between 0 and 1"
        labels = object_cfg.get('labels') or {}
        if not isinstance(labels, dict):
            return False, "object.labels must map object labels to lists of class names"
        for label, names in labels.items():
            if label not in VALID_OBJECT_LABELS:
                return False, f"object.labels.{label} is not an object label (one of: {', '.join(VALID_OBJECT_LABELS)})"
            if not isinstance(names, list) or not all(isinstance(n, str) and n for n in names):
                return False, f"object.labels.{label} must be a list of class names"
    if face_cfg.get('enabled', True):
        if not isinstance(face_cfg.get('predictor_path', ''), str) or not face_cfg.get('predictor_path'):
            return False, "face.predictor_path is required when the face family is enabled"
        for key in ('looking_away_ratio', 'eye_closed_ratio', 'happy_threshold'):
            if key in face_cfg and not _positive_number(face_cfg[key]):
                return False, f"face.{key} must be a positive number"

    # Messages
    for kind in (config.get('messages', {}) or {}):
        if kind not in VALID_KINDS:
            return False, f"messages.{kind} is not a distraction kind (one of: {', '.join(VALID_KINDS)})"

    # Logging
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


async def _show_preview(engine: DetectionScheduler, stop_event: asyncio.Event) -> None:
    """Preview window loop; pressing 'q' requests shutdown."""
    try:
        while not stop_event.is_set():
            frame = engine.overlay
            if frame is not None:
                cv2.imshow("Distraction Monitor", frame)
            if cv2.waitKey(1) & 0xFF == ord('q'):
                stop_event.set()
                break
            await asyncio.sleep(0.05)
    finally:
        cv2.destroyAllWindows()


async def _watch_engine(engine: DetectionScheduler) -> None:
    """Return once a running engine has dropped back to idle (camera lost, models failed)."""
    while engine.state != EngineState.IDLE:
        await asyncio.sleep(0.5)
    logging.error("Distraction detection ended unexpectedly")


async def run(config: Dict[str, Any], display: bool = False, web: bool = False,
              duration: Optional[float] = None) -> int:
    """Run one engine until stopped. Returns the process exit code."""
    engine = create_scheduler_from_config(config)
    alerts = AlertPresenter(sound=(config.get("alerts", {}) or {}).get("sound", True))
    engine.on_verdict_change(alerts)
    ctx = RuntimeContext(config=config, engine=engine, alerts=alerts)

    stop_event = asyncio.Event()
    tasks = []
    watcher = None
    try:
        if web:
            web_cfg = config.get("web", {}) or {}
            server = uvicorn.Server(uvicorn.Config(
                create_app(ctx),
                host=web_cfg.get("host", "127.0.0.1"),
                port=int(web_cfg.get("port", 5000)),
                log_level="info",
            ))
            tasks.append(asyncio.ensure_future(server.serve()))
            logging.info(f"Control API on http://{server.config.host}:{server.config.port}/api/detection")
        elif not await engine.start():
            logging.error("Could not start distraction detection (see errors above)")
            return 1
        else:
            watcher = asyncio.ensure_future(_watch_engine(engine))
            tasks.append(watcher)

        if display:
            tasks.append(asyncio.ensure_future(_show_preview(engine, stop_event)))

        tasks.append(asyncio.ensure_future(stop_event.wait()))
        done, _ = await asyncio.wait(tasks, timeout=duration, return_when=asyncio.FIRST_COMPLETED)
        return 1 if watcher in done else 0
    finally:
        engine.shutdown()
        for task in tasks:
            task.cancel()
        logging.info("Distraction Monitor stopped")


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Distraction Monitor - webcam focus tracking')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show the annotated preview window')
    parser.add_argument('--web', action='store_true',
                        help='Serve the control API (start/stop over HTTP)')
    parser.add_argument('--duration', type=float, default=None,
                        help='Stop after this many seconds')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting Distraction Monitor")

    try:
        exit_code = asyncio.run(run(config, display=args.display, web=args.web, duration=args.duration))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
