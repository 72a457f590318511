"""WebSocket handler del canal en vivo del dashboard.

Protocol:
1. Client conecta a /ws
2. Server → {type: "history", data: [Reading]}
3. Server → {type: "simulink-sample", payload} por cada muestra retenida
4. Server → {type: "status", level: "info", message: "Connected to ..."}
5. Server → eventos en vivo: reading / simulink-sample / status

Los mensajes que envía el cliente se ignoran; la lectura solo sirve para
detectar la desconexión.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import WebSocket, WebSocketDisconnect

from ...broadcast import LiveClient
from ...endpoints.deps import get_ws_runtime

logger = logging.getLogger(__name__)


async def websocket_live(websocket: WebSocket):
    """WebSocket endpoint para el stream en vivo."""
    runtime = get_ws_runtime(websocket)
    await websocket.accept()

    client = LiveClient(
        websocket.send_json,
        max_queue=runtime.settings.ws_client_queue_size,
    )
    # Snapshot + registro sin await intermedio: no hay huecos ni duplicados.
    if not runtime.broadcaster.register(client):
        await websocket.close(code=1013)
        return
    sender = asyncio.create_task(client.run(), name=f"ws-sender-{client.name}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
        logger.info("[WebSocket] Client disconnected: %s", client.name)
    except WebSocketDisconnect:
        logger.info("[WebSocket] Client disconnected: %s", client.name)
    except Exception as e:
        logger.exception("[WebSocket] Client error: %s error=%s", client.name, e)
    finally:
        runtime.broadcaster.deregister(client)
        client.close()
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
