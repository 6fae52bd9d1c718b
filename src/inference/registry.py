"""
ModelRegistry: loads each classifier family's backend once, off the event loop.

The registry is owned by one engine instance. Loading is lazy: the first
`load(family)` starts it, concurrent callers share the same load, and a
family that failed stays failed (no retry, no per-tick reload).
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from models.config import ObjectConfig
from models.errors import ModelLoadError
from models.signals import Family


class ModelReadiness(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


BackendLoader = Callable[[], Any]


class ModelRegistry:
    """
    Per-engine registry of classifier backends.

    Example:
        registry = ModelRegistry({Family.OBJECT: lambda: UltralyticsCpuBackend(cfg)})
        await registry.load(Family.OBJECT)
        backend = registry.backend(Family.OBJECT)
    """

    def __init__(self, loaders: Dict[Family, BackendLoader]):
        self._loaders = dict(loaders)
        self._readiness: Dict[Family, ModelReadiness] = {
            family: ModelReadiness.UNLOADED for family in self._loaders
        }
        self._backends: Dict[Family, Any] = {}
        self._errors: Dict[Family, str] = {}
        self._tasks: Dict[Family, asyncio.Future] = {}
        self._generation = 0

    def has_family(self, family: Family) -> bool:
        return family in self._loaders

    def readiness(self, family: Family) -> ModelReadiness:
        return self._readiness.get(family, ModelReadiness.UNLOADED)

    def is_ready(self, family: Family) -> bool:
        return self.readiness(family) == ModelReadiness.READY

    def error(self, family: Family) -> Optional[str]:
        return self._errors.get(family)

    def backend(self, family: Family) -> Any:
        """Return the loaded backend. Raises ModelLoadError if the family is not ready."""
        if not self.is_ready(family):
            raise ModelLoadError(family.value, f"model is {self.readiness(family).value}")
        return self._backends[family]

    async def load(self, family: Family) -> None:
        """
        Load `family` at most once.

        Raises:
            ModelLoadError: If no loader is registered or the backend failed to initialize.
        """
        if family not in self._loaders:
            raise ModelLoadError(family.value, "no loader registered")

        readiness = self.readiness(family)
        if readiness == ModelReadiness.READY:
            return
        if readiness == ModelReadiness.FAILED:
            raise ModelLoadError(family.value, self._errors.get(family, ""))

        task = self._tasks.get(family)
        if task is None:
            task = asyncio.ensure_future(self._load(family))
            self._tasks[family] = task
        await asyncio.shield(task)

    async def _load(self, family: Family) -> None:
        generation = self._generation
        self._readiness[family] = ModelReadiness.LOADING
        logging.info(f"Loading {family.value} model")
        try:
            backend = await asyncio.to_thread(self._loaders[family])
        except Exception as e:
            if generation == self._generation:
                self._readiness[family] = ModelReadiness.FAILED
                self._errors[family] = str(e)
            logging.error(f"Error loading {family.value} model: {e}")
            raise ModelLoadError(family.value, str(e)) from e

        if generation != self._generation:
            logging.info(f"Registry closed while loading {family.value} model; discarding backend")
            return

        self._backends[family] = backend
        self._readiness[family] = ModelReadiness.READY
        logging.info(f"{family.value.capitalize()} model loaded successfully")

    def close(self) -> None:
        """Drop every loaded backend. A later load() starts from scratch."""
        self._generation += 1
        self._backends.clear()
        self._errors.clear()
        self._tasks.clear()
        for family in self._readiness:
            self._readiness[family] = ModelReadiness.UNLOADED

    def snapshot(self) -> Dict[str, str]:
        return {family.value: state.value for family, state in self._readiness.items()}


def create_registry_from_config(config: Dict[str, Any]) -> ModelRegistry:
    """
    Factory: register a loader for every enabled family in the config dict.

    Backends are only constructed when the registry loads them.
    """
    from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend
    from .face_backend import DlibFaceBackend, DlibFaceConfig

    loaders: Dict[Family, BackendLoader] = {}

    object_cfg = config.get("object", {}) or {}
    if object_cfg.get("enabled", True):
        # Run the model at the lowest configured threshold; the object
        # classifier applies the per-class thresholds afterwards.
        thresholds = [float(object_cfg.get("conf_threshold", 0.5))]
        thresholds += [float(v) for v in (object_cfg.get("class_thresholds") or {}).values()]
        labels = ObjectConfig.from_dict(object_cfg).labels
        yolo_cfg = CpuYoloConfig(
            model=object_cfg.get("model", "yolov8n.pt"),
            conf_threshold=min(thresholds),
            iou_threshold=float(object_cfg.get("iou_threshold", 0.45)),
            tracked_names=sorted({name for names in labels.values() for name in names}),
        )
        loaders[Family.OBJECT] = lambda: UltralyticsCpuBackend(yolo_cfg)

    face_cfg = config.get("face", {}) or {}
    if face_cfg.get("enabled", True):
        dlib_cfg = DlibFaceConfig(
            predictor_path=face_cfg.get("predictor_path", "models/shape_predictor_68_face_landmarks.dat"),
            expression_model=face_cfg.get("expression_model"),
            upsample=int(face_cfg.get("upsample", 0)),
        )
        loaders[Family.FACE] = lambda: DlibFaceBackend(dlib_cfg)

    return ModelRegistry(loaders)
