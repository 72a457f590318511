"""Endpoints de datos Simulink.

MATLAB (data_extract_YSZ.m) hace POST a ``/data``; ``/api/sim-data`` es un
alias con prefijo de API. Los GET sirven al dashboard.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ..runtime import MonitorRuntime
from ..schemas import SimAck, SimFieldsOut, SimHistoryOut, SimLatestOut, SimStatusOut
from ..simulink.ingestor import EXPECTED_SHAPE, SampleValidationError
from .deps import get_runtime, parse_limit

router = APIRouter(tags=["simulink"])
logger = logging.getLogger(__name__)


async def _ingest(request: Request, runtime: MonitorRuntime):
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None

    try:
        runtime.ingestor.ingest(body)
    except SampleValidationError as e:
        logger.warning("[Simulink] Invalid payload received: %s", body)
        return JSONResponse(status_code=400, content={"status": "error", "message": str(e) or EXPECTED_SHAPE})

    return SimAck()


@router.post("/data", response_model=SimAck)
async def post_simulink_data(request: Request, runtime: MonitorRuntime = Depends(get_runtime)):
    """Body: {"time": number, "data": {signal: number|null, ...}}"""
    return await _ingest(request, runtime)


@router.post("/api/sim-data", response_model=SimAck)
async def post_sim_data(request: Request, runtime: MonitorRuntime = Depends(get_runtime)):
    return await _ingest(request, runtime)


@router.get("/api/sim/history", response_model=SimHistoryOut)
def get_sim_history(
    limit: Optional[str] = Query(None, description="Most recent N samples (default: all)"),
    runtime: MonitorRuntime = Depends(get_runtime),
):
    samples = runtime.ingestor.history(parse_limit(limit, None))
    return SimHistoryOut(samples=[s.to_dict() for s in samples])


@router.get("/api/sim/latest", response_model=SimLatestOut)
def get_sim_latest(runtime: MonitorRuntime = Depends(get_runtime)):
    sample = runtime.ingestor.latest()
    return SimLatestOut(sample=sample.to_dict() if sample else None)


@router.get("/api/sim/fields", response_model=SimFieldsOut)
def get_sim_fields(runtime: MonitorRuntime = Depends(get_runtime)):
    """Nombres de señal vistos desde el arranque, ordenados."""
    return SimFieldsOut(fields=runtime.ingestor.known_fields())


@router.get("/api/sim/status", response_model=SimStatusOut)
def get_sim_status(runtime: MonitorRuntime = Depends(get_runtime)):
    ingestor = runtime.ingestor
    return SimStatusOut(
        mode=runtime.arbiter.sim_mode.value,
        count=ingestor.count(),
        received=ingestor.received_total,
        fields=len(ingestor.known_fields()),
    )
