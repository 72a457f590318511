"""Muestra de simulación empujada por la herramienta externa (Simulink)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ExternalSample:
    """Paso de simulación con un conjunto abierto de señales.

    Las claves de ``fields`` vienen de las etiquetas del scope de MATLAB y
    pueden cambiar de una muestra a otra.
    """

    time: float
    fields: Dict[str, Optional[float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "data": dict(self.fields)}
