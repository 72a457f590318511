"""Métricas SOFC simuladas para las vistas del dashboard sin sensor real."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..runtime import MonitorRuntime
from .deps import get_runtime

router = APIRouter(prefix="/api", tags=["mock"])


@router.get("/mock-sofc-metrics")
def get_mock_sofc_metrics(runtime: MonitorRuntime = Depends(get_runtime)):
    return {"success": True, "data": runtime.generator.mock_sofc_metrics()}


@router.get("/mock-iv-curve")
def get_mock_iv_curve(runtime: MonitorRuntime = Depends(get_runtime)):
    """Curva I-V de 0 a 25 A para el gráfico de rendimiento."""
    return {"success": True, "data": runtime.generator.mock_iv_curve()}
