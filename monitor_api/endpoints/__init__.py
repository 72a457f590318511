"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API del monitor organizados por función.
"""

from .diagnostics import router as diagnostics_router
from .health import router as health_router
from .mock_metrics import router as mock_metrics_router
from .readings import router as readings_router
from .serial_settings import router as serial_router
from .simulink import router as simulink_router

__all__ = [
    "diagnostics_router",
    "health_router",
    "mock_metrics_router",
    "readings_router",
    "serial_router",
    "simulink_router",
]
