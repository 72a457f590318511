"""Transporte serie sobre pyserial.

Todas las llamadas son bloqueantes; DeviceLink las ejecuta en un hilo de
trabajo con ``asyncio.to_thread``.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

import serial
from serial.tools import list_ports

from ..core.domain import SerialConfig

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Fallo de apertura, lectura o cierre del puerto."""


class DeviceTransport(Protocol):
    """Interfaz mínima que DeviceLink necesita de un transporte de líneas."""

    @property
    def is_open(self) -> bool:
        ...

    def open(self) -> None:
        """Abre el puerto. Lanza TransportError si no está disponible."""
        ...

    def readline(self) -> Optional[str]:
        """Devuelve una línea completa, "" si venció el timeout sin línea
        completa, o None si el puerto se cerró. Lanza TransportError ante
        fallos de lectura."""
        ...

    def close(self) -> None:
        ...


class SerialTransport:
    """Puerto serie con lectura por líneas tolerante a timeouts.

    ``serial.Serial.readline`` devuelve lo leído hasta el timeout aunque la
    línea esté incompleta; los fragmentos se acumulan hasta recibir ``\\n``.
    """

    def __init__(self, port: str, baud_rate: int, *, read_timeout: float = 0.5) -> None:
        self.port = port
        self.baud_rate = baud_rate
        self.read_timeout = read_timeout
        self._serial: Optional[serial.Serial] = None
        self._pending = bytearray()

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baud_rate,
                timeout=self.read_timeout,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            self._serial = None
            raise TransportError(str(e)) from e
        self._pending.clear()

    def readline(self) -> Optional[str]:
        ser = self._serial
        if ser is None or not ser.is_open:
            return None
        try:
            chunk = ser.readline()
        except (serial.SerialException, OSError) as e:
            raise TransportError(str(e)) from e

        if not chunk:
            return ""
        self._pending.extend(chunk)
        if not self._pending.endswith(b"\n"):
            return ""

        line = bytes(self._pending)
        self._pending.clear()
        return line.decode("utf-8", errors="replace").rstrip("\r\n")

    def close(self) -> None:
        ser = self._serial
        self._serial = None
        self._pending.clear()
        if ser is None:
            return
        try:
            ser.close()
        except (serial.SerialException, OSError) as e:
            logger.error("[Serial] Error closing port: %s", e)


def serial_transport_factory(read_timeout: float = 0.5):
    """Factory por defecto de DeviceLink: un SerialTransport por conexión."""

    def _factory(config: SerialConfig) -> DeviceTransport:
        return SerialTransport(config.port, config.baud_rate, read_timeout=read_timeout)

    return _factory


def list_serial_ports() -> List[str]:
    """Rutas de los puertos serie visibles en el sistema."""
    return [p.device for p in list_ports.comports()]
