"""Estados y modos observables del monitor."""

from __future__ import annotations

from enum import Enum


class ConnectionState(str, Enum):
    """Estado del enlace serie (propiedad exclusiva de DeviceLink)."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"


class DeviceMode(str, Enum):
    """Modo del canal de dispositivo visto por los clientes."""
    CONNECTING = "connecting"
    LIVE = "live"
    DEMO = "demo"
    DISCONNECTED = "disconnected"


class SimMode(str, Enum):
    """Modo del canal de simulación externa."""
    LIVE = "live"
    IDLE = "idle"
    NO_DATA = "no-data"


class StatusLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
