"""
DistractionVerdict: the single value handed from the engine to its host.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class DistractionKind(str, Enum):
    """The active distraction, one at a time."""
    NONE = "none"
    PHONE = "phone"
    PET = "pet"
    MULTIPLE_PEOPLE = "multiple_people"
    NO_FACE = "no_face"
    LOOKING_AWAY = "looking_away"
    EYES_CLOSED = "eyes_closed"


DEFAULT_MESSAGES: Dict[DistractionKind, str] = {
    DistractionKind.NONE: "",
    DistractionKind.PHONE: "📱 Put that rectangle of distraction down! Your productivity called, it's crying! 😭",
    DistractionKind.PET: "🐕 Aww, pet therapy session detected! But your work is feeling lonely too! 🥺",
    DistractionKind.MULTIPLE_PEOPLE: "👫 Multiple humans detected! Are you starting a productivity support group? 🤝📊",
    DistractionKind.NO_FACE: "👻 Where did you go? Your screen misses you!",
    DistractionKind.LOOKING_AWAY: "👀 Eyes! Literally, put your eyes here!",
    DistractionKind.EYES_CLOSED: "😴 Sleeping on the job? Wake up, they're paying you!",
}


@dataclass(frozen=True)
class DistractionVerdict:
    """
    The engine's externally visible determination.

    Attributes:
        distracted: True for every kind except NONE.
        kind: The active distraction.
        message: Human-readable banner text for the host to render.
    """
    distracted: bool
    kind: DistractionKind
    message: str = ""

    @classmethod
    def none(cls) -> "DistractionVerdict":
        return cls(distracted=False, kind=DistractionKind.NONE, message="")

    @classmethod
    def of(cls, kind: DistractionKind, messages: Optional[Dict[DistractionKind, str]] = None) -> "DistractionVerdict":
        """Build the verdict for `kind` using `messages` (defaults if omitted)."""
        if kind == DistractionKind.NONE:
            return cls.none()
        catalog = messages or DEFAULT_MESSAGES
        message = catalog.get(kind) or DEFAULT_MESSAGES[kind]
        return cls(distracted=True, kind=kind, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distracted": self.distracted,
            "kind": self.kind.value,
            "message": self.message,
        }


def build_message_catalog(overrides: Optional[Dict[str, str]] = None) -> Dict[DistractionKind, str]:
    """Merge per-kind message overrides (keyed by kind value) into the defaults."""
    catalog = dict(DEFAULT_MESSAGES)
    for key, text in (overrides or {}).items():
        try:
            kind = DistractionKind(key)
        except ValueError:
            raise ValueError(f"Unknown distraction kind in messages: {key}")
        if kind != DistractionKind.NONE and text:
            catalog[kind] = str(text)
    return catalog
