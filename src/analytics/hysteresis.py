from __future__ import annotations

from typing import Dict, Iterable, Optional

from models.config import HysteresisConfig
from models.signals import FaceSignal, FaceSignals, ObjectLabel, SignalCounters
from models.verdict import DEFAULT_MESSAGES, DistractionKind, DistractionVerdict

# Object labels in precedence order with the verdict kind each one produces.
OBJECT_PRECEDENCE = (
    (ObjectLabel.HANDHELD_DEVICE, DistractionKind.PHONE),
    (ObjectLabel.ANIMAL, DistractionKind.PET),
    (ObjectLabel.EXTRA_PERSON, DistractionKind.MULTIPLE_PEOPLE),
)

FACE_PRECEDENCE = (
    (FaceSignal.LOOKING_AWAY, DistractionKind.LOOKING_AWAY),
    (FaceSignal.EYES_CLOSED, DistractionKind.EYES_CLOSED),
    (FaceSignal.NO_FACE, DistractionKind.NO_FACE),
)


class HysteresisEngine:
    """
    Debounces face signals and resolves the final verdict.

    Each signal is below threshold until its counter of consecutive
    positive ticks reaches the configured threshold. A single negative
    tick resets the counter to zero; there is no partial decay.
    """

    def __init__(
        self,
        cfg: Optional[HysteresisConfig] = None,
        messages: Optional[Dict[DistractionKind, str]] = None,
    ):
        self.cfg = cfg or HysteresisConfig()
        self.messages = messages or dict(DEFAULT_MESSAGES)
        self._counters = SignalCounters()

    def update(self, signal: FaceSignal, positive: bool) -> bool:
        """Record one tick for `signal` and return whether it is at threshold."""
        if positive:
            self._counters.set(signal, self._counters.get(signal) + 1)
        else:
            self._counters.set(signal, 0)
        return self.at_threshold(signal)

    def reset(self, signal: FaceSignal) -> None:
        self._counters.set(signal, 0)

    def reset_all(self) -> None:
        self._counters = SignalCounters()

    def count(self, signal: FaceSignal) -> int:
        return self._counters.get(signal)

    def at_threshold(self, signal: FaceSignal) -> bool:
        return self._counters.get(signal) >= self.cfg.threshold(signal)

    def counters(self) -> SignalCounters:
        """Copy of the current counters (safe to hand to hosts)."""
        c = self._counters
        return SignalCounters(no_face=c.no_face, looking_away=c.looking_away, eyes_closed=c.eyes_closed)

    def apply_face(self, signals: FaceSignals) -> None:
        """
        Update all three face counters from one tick.

        Without a face, looking-away and eyes-closed are undefined and count
        as negative, so a stale gaze streak cannot outlive the face.
        """
        self.update(FaceSignal.NO_FACE, not signals.face_found)
        self.update(FaceSignal.LOOKING_AWAY, bool(signals.face_found and signals.looking_away))
        self.update(FaceSignal.EYES_CLOSED, bool(signals.face_found and signals.eyes_closed))

    def resolve(self, object_labels: Iterable[ObjectLabel] = ()) -> DistractionVerdict:
        """Merge object labels with face counters into one verdict by fixed precedence."""
        labels = set(object_labels)
        for label, kind in OBJECT_PRECEDENCE:
            if label in labels:
                return DistractionVerdict.of(kind, self.messages)
        for signal, kind in FACE_PRECEDENCE:
            if self.at_threshold(signal):
                return DistractionVerdict.of(kind, self.messages)
        return DistractionVerdict.none()
