"""Health y métricas."""

from datetime import datetime, timezone

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["health"])


@router.get("/api/health")
def health():
    """Liveness probe: always returns ok if the process is running."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


@router.get("/metrics")
def metrics():
    """Contadores Prometheus del pipeline (líneas, lecturas, muestras, clientes)."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
