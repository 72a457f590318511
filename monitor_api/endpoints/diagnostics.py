"""Diagnostics endpoint for pipeline observability.

Expone contadores agregados del enlace serie, del parser de líneas, del
canal Simulink y de los clientes WebSocket. No expone datos crudos.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..runtime import MonitorRuntime
from .deps import get_runtime

router = APIRouter(tags=["diagnostics"])


@router.get("/api/diagnostics")
def get_diagnostics(runtime: MonitorRuntime = Depends(get_runtime)):
    """Get pipeline diagnostics.

    Example response:
    ```json
    {
        "serial": {"state": "open", "port": "COM8", "lines_received": 120, ...},
        "parser": {"accepted": 118, "ignored": 1, "malformed": 1, ...},
        "modes": {"device": "live", "sim": "no-data"},
        "clients": 2,
        "buffers": {"readings": 118, "readings_capacity": 500, ...},
        "simulink": {"received": 0, "fields": 0},
        "demo_readings": 0
    }
    ```
    """
    link = runtime.link
    serial = {"state": link.state.value, "port": link.config.port, "pending_reconnect": link.has_pending_reconnect}
    serial.update(link.stats.to_dict())

    return {
        "serial": serial,
        "parser": runtime.parser.stats.to_dict(),
        "modes": {
            "device": runtime.arbiter.device_mode.value,
            "sim": runtime.arbiter.sim_mode.value,
        },
        "clients": runtime.broadcaster.client_count(),
        "buffers": {
            "readings": runtime.readings.count(),
            "readings_capacity": runtime.readings.capacity,
            "samples": runtime.samples.count(),
            "samples_capacity": runtime.samples.capacity,
        },
        "simulink": {
            "received": runtime.ingestor.received_total,
            "fields": len(runtime.ingestor.known_fields()),
        },
        "demo_readings": runtime.arbiter.demo_readings,
    }
