"""Cliente en vivo: cola por conexión + bomba de envío."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

Message = Dict[str, Any]

_ids = itertools.count(1)
_CLOSE = object()


class ClientChannel(Protocol):
    """Lo que el Broadcaster necesita de un cliente registrado."""

    @property
    def is_open(self) -> bool:
        ...

    def offer(self, message: Message) -> bool:
        """Encola un mensaje sin bloquear. False si no se pudo encolar."""
        ...


class LiveClient:
    """Conexión WebSocket vista desde el Broadcaster.

    - ``offer`` encola sin await, así el registro y la publicación son
      atómicos dentro del event loop.
    - ``run`` envía los mensajes en el orden en que se encolaron.
    - Un fallo de envío cierra el cliente; los demás no se enteran.
    """

    def __init__(
        self,
        send: Callable[[Message], Awaitable[None]],
        *,
        max_queue: int = 5000,
        name: Optional[str] = None,
    ) -> None:
        self._send = send
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue(maxsize=max_queue)
        self._open = True
        self.name = name or f"client-{next(_ids)}"
        self.sent = 0

    @property
    def is_open(self) -> bool:
        return self._open

    def offer(self, message: Message) -> bool:
        if not self._open:
            return False
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            logger.warning("[WebSocket] Queue full, dropping slow client %s", self.name)
            self.close()
            return False

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        try:
            self._queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            # La bomba verá _open=False tras vaciar lo pendiente.
            pass

    async def run(self) -> None:
        """Bomba de envío; termina al cerrar el cliente o al fallar un envío."""
        while True:
            message = await self._queue.get()
            if message is _CLOSE:
                return
            try:
                await self._send(message)
                self.sent += 1
            except Exception as e:
                logger.info("[WebSocket] Send failed for %s: %s", self.name, e)
                self._open = False
                return
            if not self._open and self._queue.empty():
                return
