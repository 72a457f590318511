"""Modelos de dominio del monitor SOFC."""

from .modes import ConnectionState, DeviceMode, SimMode, StatusLevel
from .reading import Reading, SerialConfig
from .sample import ExternalSample

__all__ = [
    "ConnectionState",
    "DeviceMode",
    "SimMode",
    "StatusLevel",
    "Reading",
    "SerialConfig",
    "ExternalSample",
]
