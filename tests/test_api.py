"""
Tests for the detection control API routes.
"""

import asyncio
from types import SimpleNamespace

import numpy as np
import pytest
from fastapi import HTTPException

from models.verdict import DistractionKind, DistractionVerdict
from pipeline.scheduler import EngineSnapshot, EngineState
from web.routes.api import (
    _encode_preview,
    _status_from_snapshot,
    detection_preview,
    detection_status,
    detection_verdict,
    start_detection,
    stop_detection,
)


def make_request(engine):
    ctx = SimpleNamespace(engine=engine)
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(ctx=ctx)))


def make_snapshot(**overrides):
    values = dict(
        state=EngineState.RUNNING,
        verdict=DistractionVerdict.of(DistractionKind.LOOKING_AWAY),
        counters={"no_face": 0, "looking_away": 3, "eyes_closed": 0},
        face_found=True,
        object_labels=[],
        readiness={"object": "ready", "face": "ready"},
        enabled=["object", "face"],
        skipped_ticks={"object": 1, "face": 0},
        uptime_seconds=12.5,
    )
    values.update(overrides)
    return EngineSnapshot(**values)


class FakeEngine:
    def __init__(self, start_ok=True):
        self.start_ok = start_ok
        self.state = EngineState.IDLE
        self.verdict = DistractionVerdict.none()
        self.overlay = None
        self.stops = 0

    async def start(self):
        if self.start_ok:
            self.state = EngineState.RUNNING
        return self.start_ok

    def stop(self):
        self.stops += 1
        self.state = EngineState.IDLE

    def snapshot(self):
        return make_snapshot(state=self.state, verdict=self.verdict)


class TestStatusFromSnapshot:
    def test_maps_all_fields(self):
        status = _status_from_snapshot(make_snapshot())
        assert status.state == "running"
        assert status.verdict.kind == "looking_away"
        assert status.verdict.distracted is True
        assert status.counters["looking_away"] == 3
        assert status.readiness == {"object": "ready", "face": "ready"}
        assert status.skipped_ticks == {"object": 1, "face": 0}
        assert status.uptime_seconds == 12.5

    def test_idle_snapshot(self):
        status = _status_from_snapshot(make_snapshot(
            state=EngineState.IDLE,
            verdict=DistractionVerdict.none(),
            face_found=False,
            uptime_seconds=None,
        ))
        assert status.state == "idle"
        assert status.verdict.kind == "none"
        assert status.verdict.message == ""
        assert status.uptime_seconds is None


class TestRoutes:
    def test_start(self):
        engine = FakeEngine()
        resp = asyncio.run(start_detection(make_request(engine)))
        assert resp.ok is True
        assert resp.state == "running"
        assert resp.detail is None

    def test_start_failure(self):
        engine = FakeEngine(start_ok=False)
        resp = asyncio.run(start_detection(make_request(engine)))
        assert resp.ok is False
        assert resp.state == "idle"
        assert resp.detail

    def test_stop(self):
        engine = FakeEngine()
        resp = stop_detection(make_request(engine))
        assert resp.ok is True
        assert resp.state == "idle"
        assert engine.stops == 1

    def test_status(self):
        engine = FakeEngine()
        engine.verdict = DistractionVerdict.of(DistractionKind.PHONE)
        status = detection_status(make_request(engine))
        assert status.verdict.kind == "phone"

    def test_verdict(self):
        engine = FakeEngine()
        engine.verdict = DistractionVerdict.of(DistractionKind.PET)
        verdict = detection_verdict(make_request(engine))
        assert verdict.kind == "pet"
        assert verdict.distracted is True

    def test_preview_when_stopped(self):
        with pytest.raises(HTTPException) as exc_info:
            detection_preview(make_request(FakeEngine()))
        assert exc_info.value.status_code == 404

    def test_preview_jpeg(self):
        engine = FakeEngine()
        engine.overlay = np.zeros((48, 64, 3), dtype=np.uint8)
        resp = detection_preview(make_request(engine))
        assert resp.media_type == "image/jpeg"
        assert resp.body[:2] == b"\xff\xd8"


class TestEncodePreview:
    def test_encodes_jpeg(self):
        data = _encode_preview(np.zeros((10, 10, 3), dtype=np.uint8))
        assert data[:2] == b"\xff\xd8"


class TestCreateApp:
    def test_routes_mounted_under_api(self):
        from web.app import create_app

        app = create_app(SimpleNamespace(engine=FakeEngine()))
        paths = {route.path for route in app.routes}
        for path in ("start", "stop", "status", "verdict", "preview.jpg"):
            assert f"/api/detection/{path}" in paths
