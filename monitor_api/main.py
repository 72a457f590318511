"""SOFC Monitoring backend.

Flujo de datos:
    Arduino (serie) --> DeviceLink --> historial --> WebSocket --> dashboard
    MATLAB (POST /data) --> SampleIngestor --> historial --> WebSocket
                        --> REST API (consultas históricas)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from common.config import Settings, get_settings

from .endpoints import (
    diagnostics_router,
    health_router,
    mock_metrics_router,
    readings_router,
    serial_router,
    simulink_router,
)
from .runtime import MonitorRuntime
from .transports.websocket import websocket_live

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    runtime: Optional[MonitorRuntime] = None,
) -> FastAPI:
    """Construye la app con un runtime propio (uno por proceso)."""
    settings = settings or get_settings()
    runtime = runtime or MonitorRuntime(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await runtime.start()
        try:
            yield
        finally:
            await runtime.stop()

    app = FastAPI(title="SOFC Monitoring Service", version="1.0.0", lifespan=lifespan)
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(readings_router)
    app.include_router(serial_router)
    app.include_router(simulink_router)
    app.include_router(mock_metrics_router)
    app.include_router(diagnostics_router)
    app.add_api_websocket_route("/ws", websocket_live)

    return app
