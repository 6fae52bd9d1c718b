"""
Inference layer: opaque classifier backends and the registry that loads them.
"""

from .backend import Detection, FaceObservation, ObjectBackend, FaceBackend
from .registry import ModelRegistry, ModelReadiness, create_registry_from_config

__all__ = [
    "Detection",
    "FaceObservation",
    "ObjectBackend",
    "FaceBackend",
    "ModelRegistry",
    "ModelReadiness",
    "create_registry_from_config",
]
