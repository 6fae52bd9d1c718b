from __future__ import annotations

import logging

import cv2
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from pipeline.scheduler import DetectionScheduler, EngineSnapshot
from ..api_models import CommandResponse, StatusResponse, VerdictResponse

router = APIRouter(prefix="/detection")


def _engine(request: Request) -> DetectionScheduler:
    return request.app.state.ctx.engine


def _status_from_snapshot(snapshot: EngineSnapshot) -> StatusResponse:
    """Map the engine's read model onto the API schema."""
    d = snapshot.to_dict()
    return StatusResponse(
        state=d["state"],
        verdict=VerdictResponse(**d["verdict"]),
        counters=d["counters"],
        face_found=d["face_found"],
        object_labels=d["object_labels"],
        readiness=d["readiness"],
        enabled=d["enabled"],
        skipped_ticks=d["skipped_ticks"],
        uptime_seconds=d["uptime_seconds"],
    )


def _encode_preview(frame) -> bytes:
    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise RuntimeError("Failed to encode JPEG")
    return buf.tobytes()


@router.post("/start", response_model=CommandResponse)
async def start_detection(request: Request):
    engine = _engine(request)
    ok = await engine.start()
    detail = None if ok else "camera unavailable or no model can run"
    return CommandResponse(ok=ok, state=engine.state.value, detail=detail)


@router.post("/stop", response_model=CommandResponse)
def stop_detection(request: Request):
    engine = _engine(request)
    engine.stop()
    return CommandResponse(ok=True, state=engine.state.value)


@router.get("/status", response_model=StatusResponse)
def detection_status(request: Request):
    return _status_from_snapshot(_engine(request).snapshot())


@router.get("/verdict", response_model=VerdictResponse)
def detection_verdict(request: Request):
    return VerdictResponse(**_engine(request).verdict.to_dict())


@router.get("/preview.jpg")
def detection_preview(request: Request):
    frame = _engine(request).overlay
    if frame is None:
        raise HTTPException(status_code=404, detail="No preview while detection is stopped")
    try:
        data = _encode_preview(frame)
    except RuntimeError as e:
        logging.warning(f"Preview encode failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return Response(content=data, media_type="image/jpeg")
