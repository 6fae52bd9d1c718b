from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class VerdictResponse(BaseModel):
    distracted: bool
    kind: str = Field(..., description="none|phone|pet|multiple_people|no_face|looking_away|eyes_closed")
    message: str = ""


class StatusResponse(BaseModel):
    """
    Engine status for polling hosts (banner, status pills, counters).
    """
    state: str = Field(..., description="idle|starting|running|stopping|failed")
    verdict: VerdictResponse
    counters: Dict[str, int] = Field(default_factory=dict, description="Consecutive positive ticks per face signal")
    face_found: bool = False
    object_labels: List[str] = Field(default_factory=list)
    readiness: Dict[str, str] = Field(default_factory=dict, description="Model readiness per family")
    enabled: List[str] = Field(default_factory=list)
    skipped_ticks: Dict[str, int] = Field(default_factory=dict)
    uptime_seconds: Optional[float] = None


class CommandResponse(BaseModel):
    ok: bool
    state: str
    detail: Optional[str] = None
