"""CLI entry point del servidor de monitoreo."""

from __future__ import annotations

import argparse
import dataclasses
import logging

import uvicorn

from common.config import get_settings

from .main import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    p = argparse.ArgumentParser(description="SOFC monitoring backend (REST + WebSocket)")
    p.add_argument("--host", default=settings.host)
    p.add_argument("--port", type=int, default=settings.port)
    p.add_argument("--serial-port", default=settings.serial_port)
    p.add_argument("--baud", type=int, default=settings.serial_baud)
    p.add_argument("--no-serial", action="store_true", help="do not open the serial port at startup")
    p.add_argument("--log-level", default=settings.log_level)
    args = p.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    settings = dataclasses.replace(
        settings,
        host=args.host,
        port=args.port,
        serial_port=args.serial_port,
        serial_baud=args.baud,
        serial_autoconnect=settings.serial_autoconnect and not args.no_serial,
        log_level=args.log_level.upper(),
    )

    logger.info(
        "[Server] HTTP http://%s:%d | WebSocket ws://%s:%d/ws | Serial %s @ %d baud",
        settings.host,
        settings.port,
        settings.host,
        settings.port,
        settings.serial_port,
        settings.serial_baud,
    )
    logger.info("[Simulink] MATLAB script should POST to: http://localhost:%d/data", settings.port)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
