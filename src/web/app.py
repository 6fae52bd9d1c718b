"""
FastAPI application factory for the distraction monitor control API.

Routes:
- POST /api/detection/start, /api/detection/stop
- GET  /api/detection/status, /api/detection/verdict, /api/detection/preview.jpg
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from runtime.context import RuntimeContext
from .routes import api


def create_app(ctx: RuntimeContext) -> FastAPI:
    """Create the FastAPI app bound to one engine instance."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Host unmount: release the camera and drop models.
        ctx.engine.shutdown()

    app = FastAPI(
        title="Distraction Monitor",
        version="0.1.0",
        description="Webcam-driven focus monitoring",
        lifespan=lifespan,
    )
    app.state.ctx = ctx

    # CORS for a local timer UI dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")

    return app
