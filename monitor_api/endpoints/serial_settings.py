"""Estado del servidor y configuración del puerto serie."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..core.domain import DeviceMode
from ..runtime import MonitorRuntime
from ..schemas import SerialSettingsIn
from .deps import get_runtime

router = APIRouter(prefix="/api", tags=["serial"])
logger = logging.getLogger(__name__)


@router.get("/status")
def get_status(runtime: MonitorRuntime = Depends(get_runtime)):
    """Estado del enlace serie, puertos visibles y modos de ambos canales."""
    link = runtime.link
    connected = link.is_connected()
    return {
        "success": True,
        "data": {
            "serialConnected": connected,
            "serialConfig": link.config.to_dict(),
            "availablePorts": link.list_endpoints(),
            "demoMode": not connected and runtime.arbiter.demo_enabled,
            "deviceMode": runtime.arbiter.device_mode.value,
            "simMode": runtime.arbiter.sim_mode.value,
        },
    }


@router.post("/settings/serial")
async def update_serial_settings(request: Request, runtime: MonitorRuntime = Depends(get_runtime)):
    """Cambia puerto/baudios y reconecta.

    Body: {"port": "COM8", "baudRate": 9600}
    """
    try:
        body = await request.json()
        payload = SerialSettingsIn.model_validate(body)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid port parameter"},
        )

    config = payload.to_config()
    try:
        connected = await runtime.link.update_config(config)
    except Exception as e:
        logger.exception("[Serial] Config update failed err=%s", type(e).__name__)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    if connected and runtime.arbiter.device_mode is DeviceMode.DEMO:
        # No esperar al próximo tick para dejar de generar lecturas demo.
        runtime.arbiter.tick()

    return {
        "success": True,
        "data": {"connected": connected, "config": config.to_dict()},
    }


@router.get("/ports")
def get_ports(runtime: MonitorRuntime = Depends(get_runtime)):
    return {"success": True, "data": runtime.link.list_endpoints()}
