from .metrics import (
    LINES_RECEIVED,
    LINES_REJECTED,
    READINGS_STORED,
    SIM_SAMPLES_INGESTED,
    WS_CLIENTS,
)
from .stats import LinkStats, ParserStats

__all__ = [
    "LINES_RECEIVED",
    "LINES_REJECTED",
    "READINGS_STORED",
    "SIM_SAMPLES_INGESTED",
    "WS_CLIENTS",
    "LinkStats",
    "ParserStats",
]
