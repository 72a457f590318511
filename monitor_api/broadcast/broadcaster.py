"""Fan-out de eventos a todos los clientes en vivo conectados.

Mensajes (envelope ``{type, ...}``):

- ``{"type": "history", "data": [Reading, ...]}``
- ``{"type": "reading", "data": Reading}``
- ``{"type": "simulink-sample", "payload": ExternalSample}``
- ``{"type": "status", "level": "info|warning|error", "message": str}``

GARANTÍAS:
- Todas las llamadas se hacen desde el hilo del event loop y ninguna hace
  await: un registro no puede intercalarse con una publicación, así que un
  evento está en el snapshot inicial o llega en vivo, nunca ambas cosas.
- Un cliente cerrado o saturado se descarta sin afectar al resto.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from ..core.domain import ExternalSample, Reading, StatusLevel
from ..core.history import BoundedHistory
from ..core.monitoring import WS_CLIENTS
from .live_client import ClientChannel, Message

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Connected to SOFC monitoring server"


def reading_message(reading: Reading) -> Message:
    return {"type": "reading", "data": reading.to_dict()}


def sample_message(sample: ExternalSample) -> Message:
    return {"type": "simulink-sample", "payload": sample.to_dict()}


def status_message(level: Union[StatusLevel, str], message: str) -> Message:
    return {"type": "status", "level": StatusLevel(level).value, "message": message}


class Broadcaster:
    """Canal de difusión hacia los dashboards conectados."""

    def __init__(
        self,
        readings: BoundedHistory[Reading],
        samples: BoundedHistory[ExternalSample],
        *,
        history_seed: int = 100,
        sample_seed: Optional[int] = None,
    ) -> None:
        self._readings = readings
        self._samples = samples
        self._history_seed = int(history_seed)
        self._sample_seed = sample_seed
        # dict como conjunto ordenado: id(cliente) -> cliente
        self._clients: Dict[int, ClientChannel] = {}

    def register(self, client: ClientChannel) -> bool:
        """Entrega historial, muestras retenidas y bienvenida; luego registra.

        Si el cliente rechaza algún mensaje del saludo no se registra y se
        devuelve False.
        """
        history = [r.to_dict() for r in self._readings.slice(self._history_seed)]
        handshake: List[Message] = [{"type": "history", "data": history}]
        handshake.extend(sample_message(s) for s in self._samples.slice(self._sample_seed))
        handshake.append(status_message(StatusLevel.INFO, WELCOME_MESSAGE))

        for message in handshake:
            if not client.offer(message):
                logger.warning(
                    "[WebSocket] Client rejected handshake (%d messages), not registered",
                    len(handshake),
                )
                close = getattr(client, "close", None)
                if close is not None:
                    close()
                return False

        self._clients[id(client)] = client
        WS_CLIENTS.set(len(self._clients))
        logger.info("[WebSocket] Client connected (clients=%d)", len(self._clients))
        return True

    def deregister(self, client: ClientChannel) -> None:
        if self._clients.pop(id(client), None) is not None:
            WS_CLIENTS.set(len(self._clients))
            logger.info("[WebSocket] Client disconnected (clients=%d)", len(self._clients))

    def client_count(self) -> int:
        return len(self._clients)

    def publish_reading(self, reading: Reading) -> int:
        return self._publish(reading_message(reading))

    def publish_sample(self, sample: ExternalSample) -> int:
        return self._publish(sample_message(sample))

    def publish_status(self, level: Union[StatusLevel, str], message: str) -> int:
        return self._publish(status_message(level, message))

    def _publish(self, message: Message) -> int:
        """Envía a todos los clientes abiertos; devuelve cuántos lo aceptaron."""
        delivered = 0
        dead: List[ClientChannel] = []
        for client in list(self._clients.values()):
            if not client.is_open:
                dead.append(client)
                continue
            try:
                accepted = client.offer(message)
            except Exception:
                logger.exception("[WebSocket] Client offer failed, dropping client")
                accepted = False
            if accepted:
                delivered += 1
            else:
                dead.append(client)

        for client in dead:
            self.deregister(client)
        return delivered

    def close_all(self) -> None:
        for client in list(self._clients.values()):
            close = getattr(client, "close", None)
            if close is not None:
                close()
            self.deregister(client)
