"""Modelo de dominio para lecturas del prototipo SOFC."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict


def _iso(ts: datetime) -> str:
    # ISO-8601 en UTC con milisegundos y sufijo Z (lo que parsea el dashboard).
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Reading:
    """Lectura validada de los cuatro sensores del prototipo.

    El dispositivo no envía timestamp; ``ts`` lo asigna el servidor al
    recibir la línea (o el generador de demo al fabricarla).
    """

    ts: datetime
    water_temp: float
    air_temp: float
    air_pressure: float
    water_pressure: float

    def to_dict(self) -> Dict[str, Any]:
        """Formato de cable (REST y WebSocket)."""
        return {
            "ts": _iso(self.ts),
            "t_water": self.water_temp,
            "t_air": self.air_temp,
            "p_air": self.air_pressure,
            "p_water": self.water_pressure,
        }


@dataclass(frozen=True)
class SerialConfig:
    """Configuración del puerto serie."""

    port: str
    baud_rate: int = 9600

    def to_dict(self) -> Dict[str, Any]:
        return {"port": self.port, "baudRate": self.baud_rate}
