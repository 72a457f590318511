from __future__ import annotations

from typing import Optional

from fastapi import Request, WebSocket

from ..runtime import MonitorRuntime


def get_runtime(request: Request) -> MonitorRuntime:
    return request.app.state.runtime


def get_ws_runtime(websocket: WebSocket) -> MonitorRuntime:
    return websocket.app.state.runtime


def parse_limit(raw: Optional[str], default: Optional[int]) -> Optional[int]:
    """``?limit=`` tolerante: ausente, no numérico o <= 0 usa ``default``."""
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default
