"""Métricas Prometheus del pipeline de ingesta.

Se registran una sola vez en el registro por defecto al importar el módulo;
el endpoint ``/metrics`` las expone en formato texto.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

LINES_RECEIVED = Counter(
    "sofc_serial_lines_received_total",
    "Lines received from the serial device",
)
LINES_REJECTED = Counter(
    "sofc_serial_lines_rejected_total",
    "Serial lines dropped by the line parser",
    ["reason"],  # malformed, schema
)
READINGS_STORED = Counter(
    "sofc_readings_stored_total",
    "Readings stored in the device history",
    ["source"],  # device, demo
)
SIM_SAMPLES_INGESTED = Counter(
    "sofc_sim_samples_ingested_total",
    "Simulation samples accepted from the external tool",
)
WS_CLIENTS = Gauge(
    "sofc_ws_clients",
    "Currently connected live dashboard clients",
)
