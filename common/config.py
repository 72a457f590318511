from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env en el directorio de trabajo.
    return str(Path.cwd() / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000

    serial_port: str = "COM8"
    serial_baud: int = 9600
    serial_autoconnect: bool = True
    serial_read_timeout: float = 0.5
    reconnect_delay_seconds: float = 5.0

    frontend_url: str = "http://localhost:5173"

    readings_history_size: int = 500
    sim_history_size: int = 2000
    ws_history_seed: int = 100
    ws_client_queue_size: int = 5000

    demo_mode_enabled: bool = True
    demo_interval_seconds: float = 1.0
    arbiter_tick_seconds: float = 1.0
    sim_stale_seconds: float = 5.0

    log_level: str = "INFO"


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("SOFC_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        serial_port=os.getenv("SERIAL_PORT", "COM8"),
        serial_baud=int(os.getenv("SERIAL_BAUD", "9600")),
        serial_autoconnect=_env_bool("SERIAL_AUTOCONNECT", "true"),
        serial_read_timeout=float(os.getenv("SERIAL_READ_TIMEOUT", "0.5")),
        reconnect_delay_seconds=float(os.getenv("SERIAL_RECONNECT_DELAY", "5")),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
        readings_history_size=int(os.getenv("READINGS_HISTORY_SIZE", "500")),
        sim_history_size=int(os.getenv("SIM_HISTORY_SIZE", "2000")),
        ws_history_seed=int(os.getenv("WS_HISTORY_SEED", "100")),
        ws_client_queue_size=int(os.getenv("WS_CLIENT_QUEUE_SIZE", "5000")),
        demo_mode_enabled=_env_bool("DEMO_MODE_ENABLED", "true"),
        demo_interval_seconds=float(os.getenv("DEMO_INTERVAL_SECONDS", "1")),
        arbiter_tick_seconds=float(os.getenv("ARBITER_TICK_SECONDS", "1")),
        sim_stale_seconds=float(os.getenv("SIM_STALE_SECONDS", "5")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
