"""Parser de líneas del protocolo serie del Arduino.

Cada línea puede traer texto de diagnóstico antes o después del objeto JSON:

    DEBUG: adc=512  {"t_water":27.5,"t_air":28.1,"p_air":2.4,"p_water":3.1}

Solo se usa lo que está entre la primera ``{`` y la última ``}``. Una línea
inválida nunca propaga error: se registra y se descarta.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.domain import Reading
from ..core.monitoring import LINES_REJECTED, ParserStats

logger = logging.getLogger(__name__)

DEFAULT_DEBUG_PREFIXES: Tuple[str, ...] = ("DEBUG", "//")


class DecodeError(ValueError):
    """Error base al decodificar un payload del dispositivo."""


class MalformedPayload(DecodeError):
    """Hay llaves pero el contenido no es un objeto JSON."""


class SchemaViolation(DecodeError):
    """JSON válido pero faltan campos o no son numéricos/finitos."""


class DevicePayload(BaseModel):
    """Schema del objeto que envía el firmware.

    Formato esperado:
    {"t_water": 27.5, "t_air": 28.1, "p_air": 2.4, "p_water": 3.1}
    """

    t_water: float = Field(..., allow_inf_nan=False)
    t_air: float = Field(..., allow_inf_nan=False)
    p_air: float = Field(..., allow_inf_nan=False)
    p_water: float = Field(..., allow_inf_nan=False)

    @field_validator("t_water", "t_air", "p_air", "p_water", mode="before")
    @classmethod
    def require_number(cls, v: Any) -> Any:
        # "27.5" o true no son lecturas: el firmware siempre envía números.
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"must be a number, got {type(v).__name__}")
        return v


class DeviceLineParser:
    """Convierte líneas de texto del puerto serie en lecturas validadas."""

    def __init__(self, debug_prefixes: Tuple[str, ...] = DEFAULT_DEBUG_PREFIXES) -> None:
        self._debug_prefixes = tuple(debug_prefixes)
        self.stats = ParserStats()

    @staticmethod
    def extract_payload(line: str) -> Optional[str]:
        """Extrae el objeto JSON delimitado por la primera '{' y la última '}'."""
        start = line.find("{")
        end = line.rfind("}")
        if start != -1 and end != -1 and end > start:
            return line[start:end + 1]
        return None

    @staticmethod
    def decode_and_validate(payload: str) -> Reading:
        """Parsea y valida el payload.

        Raises:
            MalformedPayload: si no es JSON o no es un objeto
            SchemaViolation: si faltan campos o no son numéricos finitos
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedPayload(f"invalid JSON: {e.msg}") from e

        if not isinstance(data, dict):
            raise MalformedPayload(f"expected object, got {type(data).__name__}")

        try:
            parsed = DevicePayload.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise SchemaViolation(f"invalid fields: {fields}") from e

        return Reading(
            ts=datetime.now(timezone.utc),
            water_temp=parsed.t_water,
            air_temp=parsed.t_air,
            air_pressure=parsed.p_air,
            water_pressure=parsed.p_water,
        )

    def process_line(self, line: str) -> Optional[Reading]:
        """Procesa una línea completa; devuelve None si no produce lectura."""
        trimmed = line.strip()
        if not trimmed:
            return None

        payload = self.extract_payload(trimmed)
        if payload is None:
            self.stats.ignored += 1
            if trimmed.startswith(self._debug_prefixes):
                logger.debug("[Serial] Debug line: %s", trimmed)
            else:
                logger.warning("[Serial] No JSON found in line: %s", trimmed)
            return None

        try:
            reading = self.decode_and_validate(payload)
        except MalformedPayload as e:
            self.stats.malformed += 1
            LINES_REJECTED.labels(reason="malformed").inc()
            logger.warning("[Serial] Failed to parse JSON (%s): %s", e, payload)
            return None
        except SchemaViolation as e:
            self.stats.schema_violations += 1
            LINES_REJECTED.labels(reason="schema").inc()
            logger.warning("[Serial] Invalid reading format (%s): %s", e, payload)
            return None

        self.stats.accepted += 1
        return reading
