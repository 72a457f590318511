"""Enlace con el dispositivo serie y máquina de estados de reconexión.

Transiciones permitidas (tabla ``_TRANSITIONS``):

    disconnected -> connecting           connect()/update_config()/reconexión
    connecting   -> open | disconnected  apertura ok / fallo
    open         -> closing              cierre pedido (close, nuevo connect)
    open         -> disconnected         error o cierre del transporte
    closing      -> disconnected

GARANTÍAS:
- Nunca hay más de un timer de reconexión pendiente: cada programación
  cancela el anterior, y cada intento de conexión cancela el pendiente.
- Los intentos de conexión se serializan con un lock.
- Ningún fallo del transporte es fatal: se notifica por el canal de estado
  y se programa un reintento.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, List, Optional

from ..broadcast import Broadcaster
from ..core.domain import ConnectionState, Reading, SerialConfig, StatusLevel
from ..core.history import BoundedHistory
from ..core.monitoring import LINES_RECEIVED, READINGS_STORED, LinkStats
from .line_parser import DeviceLineParser
from .transport import DeviceTransport, TransportError, list_serial_ports, serial_transport_factory

logger = logging.getLogger(__name__)

TransportFactory = Callable[[SerialConfig], DeviceTransport]

_TRANSITIONS: Dict[ConnectionState, FrozenSet[ConnectionState]] = {
    ConnectionState.DISCONNECTED: frozenset({ConnectionState.CONNECTING}),
    ConnectionState.CONNECTING: frozenset({ConnectionState.OPEN, ConnectionState.DISCONNECTED}),
    ConnectionState.OPEN: frozenset({ConnectionState.CLOSING, ConnectionState.DISCONNECTED}),
    ConnectionState.CLOSING: frozenset({ConnectionState.DISCONNECTED}),
}


class IllegalTransition(RuntimeError):
    """Transición no prevista en la tabla de estados (error de programación)."""

    def __init__(self, current: ConnectionState, target: ConnectionState):
        self.current = current
        self.target = target
        super().__init__(f"Illegal serial state transition {current.value} -> {target.value}")


class DeviceLink:
    """Ciclo de vida de la conexión con el Arduino.

    Las lecturas válidas se guardan en el historial de dispositivo y se
    publican en el Broadcaster; las líneas inválidas no tienen efecto.

    Uso:
        link = DeviceLink(SerialConfig("COM8", 9600), readings, broadcaster)
        connected = await link.connect()
        ...
        await link.shutdown()
    """

    def __init__(
        self,
        config: SerialConfig,
        history: BoundedHistory[Reading],
        broadcaster: Broadcaster,
        *,
        parser: Optional[DeviceLineParser] = None,
        transport_factory: Optional[TransportFactory] = None,
        port_lister: Callable[[], List[str]] = list_serial_ports,
        reconnect_delay: float = 5.0,
    ) -> None:
        self._config = config
        self._history = history
        self._broadcaster = broadcaster
        self._parser = parser or DeviceLineParser()
        self._transport_factory = transport_factory or serial_transport_factory()
        self._port_lister = port_lister
        self._reconnect_delay = float(reconnect_delay)

        self._state = ConnectionState.DISCONNECTED
        self._transport: Optional[DeviceTransport] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._connect_lock = asyncio.Lock()
        self._shutdown = False

        self.stats = LinkStats()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def config(self) -> SerialConfig:
        return self._config

    @property
    def parser(self) -> DeviceLineParser:
        return self._parser

    @property
    def has_pending_reconnect(self) -> bool:
        return self._reconnect_handle is not None

    def is_connected(self) -> bool:
        return self._state is ConnectionState.OPEN

    def _transition(self, target: ConnectionState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise IllegalTransition(self._state, target)
        logger.debug("[Serial] State %s -> %s", self._state.value, target.value)
        self._state = target

    # ------------------------------------------------------------------
    # Conexión
    # ------------------------------------------------------------------

    async def connect(self, config: Optional[SerialConfig] = None) -> bool:
        """Cierra la conexión actual (si hay) y abre ``config`` o la vigente."""
        return await self._connect(config, automatic=False)

    async def update_config(self, config: SerialConfig) -> bool:
        """Cambia puerto/baudios: siempre cierra y vuelve a abrir."""
        logger.info("[Serial] Updating config: port=%s, baudRate=%d", config.port, config.baud_rate)
        return await self.connect(config)

    async def _connect(self, config: Optional[SerialConfig], *, automatic: bool) -> bool:
        async with self._connect_lock:
            if self._shutdown:
                return False
            self._cancel_reconnect()
            if automatic and self._state is ConnectionState.OPEN:
                # Un connect manual ganó la carrera al timer.
                return True

            if config is not None:
                self._config = config
            await self._close_transport()

            cfg = self._config
            self._transition(ConnectionState.CONNECTING)
            self.stats.connect_attempts += 1
            logger.info("[Serial] Attempting to connect to %s at %d baud...", cfg.port, cfg.baud_rate)

            try:
                transport = self._transport_factory(cfg)
                await asyncio.to_thread(transport.open)
            except TransportError as e:
                return self._on_connect_failed(cfg, str(e))
            except Exception as e:
                logger.exception("[Serial] Unexpected error opening %s", cfg.port)
                return self._on_connect_failed(cfg, str(e))

            if self._shutdown:
                transport.close()
                self._transition(ConnectionState.DISCONNECTED)
                return False

            self._transport = transport
            self._transition(ConnectionState.OPEN)
            logger.info("[Serial] Connected to %s", cfg.port)
            self._broadcaster.publish_status(StatusLevel.INFO, f"Connected to {cfg.port}")
            self._reader_task = asyncio.create_task(self._read_loop(transport), name="serial-reader")
            return True

    def _on_connect_failed(self, cfg: SerialConfig, reason: str) -> bool:
        self._transition(ConnectionState.DISCONNECTED)
        self.stats.transport_errors += 1
        logger.error("[Serial] Failed to open port %s: %s", cfg.port, reason)
        self._broadcaster.publish_status(StatusLevel.ERROR, f"Serial port not available: {reason}")
        self._schedule_reconnect()
        return False

    async def close(self) -> None:
        """Cierra el puerto y cancela el reintento pendiente."""
        async with self._connect_lock:
            self._cancel_reconnect()
            await self._close_transport()

    async def shutdown(self) -> None:
        """Cierre definitivo: después de esto no se programan más reintentos."""
        self._shutdown = True
        self._cancel_reconnect()
        async with self._connect_lock:
            await self._close_transport()
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and not task.done():
            # El resultado (o la excepción) lo recoge _on_reconnect_done.
            await asyncio.wait([task])
        logger.info("[Serial] Link shut down")

    async def _close_transport(self) -> None:
        reader = self._reader_task
        self._reader_task = None
        if self._state is ConnectionState.OPEN:
            self._transition(ConnectionState.CLOSING)

        if reader is not None and not reader.done():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader

        transport = self._transport
        self._transport = None
        if transport is not None:
            transport.close()
            logger.info("[Serial] Port closed")

        if self._state is ConnectionState.CLOSING:
            self._transition(ConnectionState.DISCONNECTED)

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    async def _read_loop(self, transport: DeviceTransport) -> None:
        while True:
            try:
                line = await asyncio.to_thread(transport.readline)
            except TransportError as e:
                self._on_transport_lost(transport, StatusLevel.ERROR, f"Serial error: {e}")
                return
            except Exception as e:
                logger.exception("[Serial] Unexpected read failure")
                self._on_transport_lost(transport, StatusLevel.ERROR, f"Serial error: {e}")
                return

            if line is None:
                self._on_transport_lost(transport, StatusLevel.WARNING, "Serial port closed")
                return
            if line:
                self.feed_line(line)

    def feed_line(self, line: str) -> Optional[Reading]:
        """Procesa una línea recibida; guarda y difunde si produce lectura."""
        self.stats.lines_received += 1
        LINES_RECEIVED.inc()

        reading = self._parser.process_line(line)
        if reading is None:
            return None

        self._history.push(reading)
        self._broadcaster.publish_reading(reading)
        self.stats.readings_stored += 1
        self.stats.last_reading_at = datetime.now(timezone.utc)
        READINGS_STORED.labels(source="device").inc()
        logger.debug(
            "[Serial] Reading: T_water=%s T_air=%s P_air=%s P_water=%s",
            reading.water_temp,
            reading.air_temp,
            reading.air_pressure,
            reading.water_pressure,
        )
        return reading

    def _on_transport_lost(self, transport: DeviceTransport, level: StatusLevel, message: str) -> None:
        if level is StatusLevel.ERROR:
            self.stats.transport_errors += 1
            logger.error("[Serial] %s", message)
        else:
            logger.warning("[Serial] %s", message)

        if self._transport is transport:
            self._transport = None
            self._reader_task = None
            transport.close()
        if self._state is ConnectionState.OPEN:
            self._transition(ConnectionState.DISCONNECTED)

        self._broadcaster.publish_status(level, message)
        self._schedule_reconnect()

    # ------------------------------------------------------------------
    # Reconexión (timer de una sola plaza)
    # ------------------------------------------------------------------

    def _schedule_reconnect(self) -> None:
        if self._shutdown:
            return
        self._cancel_reconnect()
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._reconnect_delay, self._on_reconnect_timer)
        self.stats.reconnects_scheduled += 1
        logger.info("[Serial] Scheduling reconnect in %g seconds...", self._reconnect_delay)

    def _cancel_reconnect(self) -> None:
        handle = self._reconnect_handle
        self._reconnect_handle = None
        if handle is not None:
            handle.cancel()

    def _on_reconnect_timer(self) -> None:
        self._reconnect_handle = None
        if self._shutdown:
            return
        loop = asyncio.get_running_loop()
        self._reconnect_task = loop.create_task(
            self._connect(None, automatic=True),
            name="serial-reconnect",
        )
        self._reconnect_task.add_done_callback(self._on_reconnect_done)

    def _on_reconnect_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "[Serial] Reconnect attempt failed: %s",
                error,
                exc_info=(type(error), error, error.__traceback__),
            )

    # ------------------------------------------------------------------
    # Descubrimiento
    # ------------------------------------------------------------------

    def list_endpoints(self) -> List[str]:
        """Puertos disponibles; ante cualquier fallo devuelve lista vacía."""
        try:
            return list(self._port_lister())
        except Exception as e:
            logger.error("[Serial] Failed to list ports: %s", e)
            return []
