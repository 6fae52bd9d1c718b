from .hysteresis import HysteresisEngine, OBJECT_PRECEDENCE, FACE_PRECEDENCE

__all__ = [
    "HysteresisEngine",
    "OBJECT_PRECEDENCE",
    "FACE_PRECEDENCE",
]
