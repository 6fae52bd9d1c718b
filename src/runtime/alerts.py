"""
Host-side alert presentation.

The engine only emits verdicts. Rendering the banner and sounding the
alarm is the host's job: the alarm rings once on the false->true edge of
`distracted`, and the banner is cleared when the verdict returns to none.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Optional

from models.verdict import DistractionVerdict


def terminal_bell() -> None:
    sys.stdout.write("\a")
    sys.stdout.flush()


class AlertPresenter:
    """
    Edge-triggered alert for the CLI host.

    Attributes:
        banner: Message currently shown, None when focused.
        alarms: Number of times the alarm has rung.
    """

    def __init__(self, sound: bool = True, alarm: Optional[Callable[[], None]] = None):
        self.sound = sound
        self._alarm = alarm or terminal_bell
        self._distracted = False
        self.banner: Optional[str] = None
        self.alarms = 0

    def __call__(self, verdict: DistractionVerdict) -> None:
        if verdict.distracted:
            self.banner = verdict.message
            logging.warning(f"[ALERT] {verdict.message}")
            if not self._distracted:
                self.alarms += 1
                if self.sound:
                    self._alarm()
        else:
            if self._distracted:
                logging.info("[ALERT] cleared, back to focus")
            self.banner = None
        self._distracted = verdict.distracted
