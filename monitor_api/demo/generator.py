"""Datos sintéticos para modo demo y métricas de presentación.

Nada de esto pretende ser un modelo físico correcto de la pila SOFC: solo
produce valores plausibles con la misma forma que los datos reales.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Dict, List

import numpy as np

from ..core.domain import Reading

# (min, max) por campo
WATER_TEMP_RANGE = (24.0, 32.0)
AIR_TEMP_RANGE = (22.0, 30.0)
AIR_PRESSURE_RANGE = (1.5, 3.5)
WATER_PRESSURE_RANGE = (2.0, 4.0)

STACK_CELLS = 10


def random_in_range(low: float, high: float, decimals: int = 2) -> float:
    return round(random.uniform(low, high), decimals)


class FallbackGenerator:
    """Lecturas falsas cuando no hay Arduino conectado.

    Sin estado: cada llamada es independiente y siempre pasa la misma
    validación que aplica DeviceLineParser.
    """

    def generate(self) -> Reading:
        return Reading(
            ts=datetime.now(timezone.utc),
            water_temp=random_in_range(*WATER_TEMP_RANGE),
            air_temp=random_in_range(*AIR_TEMP_RANGE),
            air_pressure=random_in_range(*AIR_PRESSURE_RANGE),
            water_pressure=random_in_range(*WATER_PRESSURE_RANGE),
        )

    def mock_sofc_metrics(self) -> Dict[str, float]:
        """Métricas de rendimiento típicas de una pila de 10 celdas."""
        cell_voltage = random_in_range(0.6, 0.9, 3)
        stack_current = random_in_range(5, 25, 2)
        cell_power = round(cell_voltage * stack_current, 2)

        return {
            "stackVoltage": round(cell_voltage * STACK_CELLS, 3),
            "stackCurrent": stack_current,
            "stackPower": round(cell_power * STACK_CELLS, 2),
            "electricalEfficiency": random_in_range(0.35, 0.60, 3),
            "thermalEfficiency": random_in_range(0.15, 0.28, 3),
            "fuelUtilization": random_in_range(0.70, 0.85, 3),
            "airExcessRatio": random_in_range(2.0, 4.0, 2),
            "stackHealth": random_in_range(75, 98, 1),
            "cellTemperature": random_in_range(650, 780, 1),
            "fuelFlowRate": random_in_range(0.5, 2.5, 2),
            "airFlowRate": random_in_range(5, 15, 2),
        }

    def mock_iv_curve(self, points: int = 51, step: float = 0.5) -> Dict[str, List[float]]:
        """Curva I-V simplificada: V = OCV - activación - óhmica - concentración."""
        ocv = random_in_range(1.0, 1.1, 3)
        current = np.arange(points) * step

        activation = np.abs(0.05 * np.log(current + 0.1))
        ohmic = 0.008 * current
        concentration = 0.02 * np.exp(0.08 * current) - 0.02
        voltage = np.round(np.maximum(0.3, ocv - activation - ohmic - concentration), 3)
        power = np.round(voltage * current, 2)

        return {
            "current": current.tolist(),
            "voltage": voltage.tolist(),
            "power": power.tolist(),
        }
