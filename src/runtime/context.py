from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

from pipeline.scheduler import DetectionScheduler
from runtime.alerts import AlertPresenter


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: dict
    engine: DetectionScheduler
    alerts: Optional[AlertPresenter] = None
    start_time: float = field(default_factory=time.time)

    def uptime_seconds(self) -> float:
        return time.time() - self.start_time
