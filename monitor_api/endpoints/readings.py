"""Consultas REST sobre el historial de lecturas del dispositivo."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..runtime import MonitorRuntime
from .deps import get_runtime, parse_limit

router = APIRouter(prefix="/api/readings", tags=["readings"])

DEFAULT_HISTORY_LIMIT = 100


@router.get("/latest")
def get_latest_reading(runtime: MonitorRuntime = Depends(get_runtime)):
    """Lectura más reciente o null si aún no hay ninguna."""
    reading = runtime.readings.latest()
    return {"success": True, "data": reading.to_dict() if reading else None}


@router.get("/history")
def get_readings_history(
    limit: Optional[str] = Query(None, description="Most recent N readings (default 100)"),
    runtime: MonitorRuntime = Depends(get_runtime),
):
    """Últimas ``limit`` lecturas, de la más antigua a la más nueva."""
    return {
        "success": True,
        "data": [r.to_dict() for r in runtime.readings.slice(parse_limit(limit, DEFAULT_HISTORY_LIMIT))],
    }
