"""Estadísticas de procesamiento del canal serie."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ParserStats:
    """Contadores de líneas procesadas por DeviceLineParser."""

    accepted: int = 0
    ignored: int = 0
    malformed: int = 0
    schema_violations: int = 0

    def __str__(self) -> str:
        return (
            f"ParserStats: accepted={self.accepted} ignored={self.ignored} "
            f"malformed={self.malformed} schema_violations={self.schema_violations}"
        )

    @property
    def rejected(self) -> int:
        return self.malformed + self.schema_violations

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "ignored": self.ignored,
            "malformed": self.malformed,
            "schema_violations": self.schema_violations,
            "rejected": self.rejected,
        }

    def reset(self):
        self.accepted = 0
        self.ignored = 0
        self.malformed = 0
        self.schema_violations = 0


@dataclass
class LinkStats:
    """Estadísticas del enlace serie."""

    lines_received: int = 0
    readings_stored: int = 0
    connect_attempts: int = 0
    reconnects_scheduled: int = 0
    transport_errors: int = 0
    last_reading_at: Optional[datetime] = None
    started_at: datetime = field(default_factory=_utcnow)

    def __str__(self) -> str:
        return (
            f"LinkStats: lines={self.lines_received} stored={self.readings_stored} "
            f"attempts={self.connect_attempts} errors={self.transport_errors}"
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        return {
            "lines_received": self.lines_received,
            "readings_stored": self.readings_stored,
            "connect_attempts": self.connect_attempts,
            "reconnects_scheduled": self.reconnects_scheduled,
            "transport_errors": self.transport_errors,
            "last_reading_at": self.last_reading_at.isoformat() if self.last_reading_at else None,
            "started_at": self.started_at.isoformat(),
            "acceptance_rate": self._acceptance_rate(),
        }

    def _acceptance_rate(self) -> float:
        """Fracción de líneas que produjeron una lectura."""
        if self.lines_received == 0:
            return 1.0
        return self.readings_stored / self.lines_received

    def reset(self):
        self.lines_received = 0
        self.readings_stored = 0
        self.connect_attempts = 0
        self.reconnects_scheduled = 0
        self.transport_errors = 0
        self.last_reading_at = None
        self.started_at = _utcnow()
