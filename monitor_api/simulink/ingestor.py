"""Ingesta de muestras Simulink empujadas por MATLAB vía HTTP POST.

El script de MATLAB (data_extract_YSZ.m) envía una muestra por paso:

    {"time": 12.3, "data": {"V_cell": 0.71, "T_stack": 1023.4, ...}}

La validación es mínima: el productor ya envía datos estructurados.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Dict, List, Optional, Set

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..broadcast import Broadcaster
from ..core.domain import ExternalSample
from ..core.history import BoundedHistory
from ..core.monitoring import SIM_SAMPLES_INGESTED

logger = logging.getLogger(__name__)

EXPECTED_SHAPE = "Invalid payload. Expected: { time: number, data: { ... } }"


class SampleValidationError(ValueError):
    """La muestra no tiene la forma {time: number, data: object}."""


class ExternalSamplePayload(BaseModel):
    """Schema de la muestra recibida."""

    time: float = Field(..., allow_inf_nan=False)
    data: Dict[str, Any]

    @field_validator("time", mode="before")
    @classmethod
    def require_number(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("time must be a number")
        return v


def _coerce_value(value: Any) -> Optional[float]:
    """Número finito -> float; cualquier otra cosa -> None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


class SampleIngestor:
    """Recibe muestras externas, las guarda y las difunde.

    - Guarda en un BoundedHistory propio (por defecto 2000 muestras).
    - Mantiene la unión acumulada de nombres de señal; la expulsión de
      muestras antiguas no hace olvidar campos.
    """

    def __init__(
        self,
        history: BoundedHistory[ExternalSample],
        broadcaster: Broadcaster,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._history = history
        self._broadcaster = broadcaster
        self._clock = clock
        self._known_fields: Set[str] = set()
        self._received = 0
        self._last_received_at: Optional[float] = None

    @property
    def last_received_at(self) -> Optional[float]:
        """Instante (reloj monotónico) de la última muestra aceptada."""
        return self._last_received_at

    @property
    def received_total(self) -> int:
        return self._received

    def ingest(self, raw: Any) -> ExternalSample:
        """Valida, guarda y difunde una muestra.

        Raises:
            SampleValidationError: si ``raw`` no es {time: number, data: object}
        """
        if not isinstance(raw, dict):
            raise SampleValidationError(EXPECTED_SHAPE)
        try:
            payload = ExternalSamplePayload.model_validate(raw)
        except ValidationError as e:
            raise SampleValidationError(EXPECTED_SHAPE) from e

        sample = ExternalSample(
            time=payload.time,
            fields={str(k): _coerce_value(v) for k, v in payload.data.items()},
        )

        self._history.push(sample)
        self._known_fields.update(sample.fields.keys())
        self._received += 1
        self._last_received_at = self._clock()
        SIM_SAMPLES_INGESTED.inc()

        self._broadcaster.publish_sample(sample)
        self._log_sample(sample)
        return sample

    def _log_sample(self, sample: ExternalSample) -> None:
        if self._received <= 3:
            logger.info(
                "[Simulink] Sample %d: time=%.3fs, signals=%d",
                self._received,
                sample.time,
                len(sample.fields),
            )
            if self._received == 1:
                names = list(sample.fields.keys())
                suffix = "..." if len(names) > 10 else ""
                logger.info("[Simulink] Signal names: %s%s", ", ".join(names[:10]), suffix)
        else:
            logger.debug("[Simulink] Sample added: time=%ss, signals=%d", sample.time, len(sample.fields))

    def known_fields(self) -> List[str]:
        return sorted(self._known_fields)

    def latest(self) -> Optional[ExternalSample]:
        return self._history.latest()

    def history(self, limit: Optional[int] = None) -> List[ExternalSample]:
        return self._history.slice(limit)

    def count(self) -> int:
        return self._history.count()
