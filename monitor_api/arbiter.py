"""Bucle de control que decide el modo de cada canal en cada tick.

Dos máquinas de estado independientes:

- Dispositivo: enlace abierto -> ``live``; si no -> ``demo`` (lecturas
  sintéticas cada ``demo_interval``) o ``disconnected`` si el demo está
  desactivado. Antes del primer tick el modo es ``connecting``.
- Simulación: sin muestras -> ``no-data``; última muestra hace menos de
  ``sim_stale_seconds`` -> ``live``; si no -> ``idle``. Solo informativo.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol

from .broadcast import Broadcaster
from .core.domain import DeviceMode, Reading, SimMode, StatusLevel
from .core.history import BoundedHistory
from .core.monitoring import READINGS_STORED
from .demo.generator import FallbackGenerator
from .simulink.ingestor import SampleIngestor

logger = logging.getLogger(__name__)

DEMO_STATUS_MESSAGE = "Running in demo mode - no Arduino connected"

# Holgura para que un tick que despierta unos ms antes no salte una lectura.
_DEMO_JITTER_SECONDS = 0.05


class LinkStatus(Protocol):
    def is_connected(self) -> bool:
        ...


class ModeArbiter:
    """Árbitro live/demo/idle.

    ``tick()`` es síncrono y se puede llamar directamente (tests); ``start()``
    lo ejecuta cada ``tick_seconds`` en una tarea asyncio.
    """

    def __init__(
        self,
        link: LinkStatus,
        readings: BoundedHistory[Reading],
        broadcaster: Broadcaster,
        generator: FallbackGenerator,
        ingestor: SampleIngestor,
        *,
        tick_seconds: float = 1.0,
        demo_interval: float = 1.0,
        sim_stale_seconds: float = 5.0,
        demo_enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._link = link
        self._readings = readings
        self._broadcaster = broadcaster
        self._generator = generator
        self._ingestor = ingestor
        self._tick_seconds = float(tick_seconds)
        self._demo_interval = float(demo_interval)
        self._sim_stale_seconds = float(sim_stale_seconds)
        self._demo_enabled = demo_enabled
        self._clock = clock

        self._device_mode = DeviceMode.CONNECTING
        self._sim_mode = SimMode.NO_DATA
        self._last_demo_at: Optional[float] = None
        self.demo_readings = 0

        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def device_mode(self) -> DeviceMode:
        return self._device_mode

    @property
    def sim_mode(self) -> SimMode:
        return self._sim_mode

    @property
    def demo_enabled(self) -> bool:
        return self._demo_enabled

    def tick(self, now: Optional[float] = None) -> None:
        now = self._clock() if now is None else now
        self._tick_device(now)
        self._tick_sim(now)

    def _tick_device(self, now: float) -> None:
        if self._link.is_connected():
            if self._device_mode is DeviceMode.DEMO:
                logger.info("[Demo] Demo mode stopped")
            self._device_mode = DeviceMode.LIVE
            self._last_demo_at = None
            return

        if not self._demo_enabled:
            if self._device_mode is not DeviceMode.DISCONNECTED:
                logger.warning("[Demo] Device disconnected and demo mode disabled")
            self._device_mode = DeviceMode.DISCONNECTED
            return

        if self._device_mode is not DeviceMode.DEMO:
            self._device_mode = DeviceMode.DEMO
            self._last_demo_at = None
            logger.info("[Demo] Starting demo mode - generating fake readings")
            self._broadcaster.publish_status(StatusLevel.WARNING, DEMO_STATUS_MESSAGE)

        due = self._last_demo_at is None or (
            now - self._last_demo_at + _DEMO_JITTER_SECONDS >= self._demo_interval
        )
        if due:
            reading = self._generator.generate()
            self._readings.push(reading)
            self._broadcaster.publish_reading(reading)
            self._last_demo_at = now
            self.demo_readings += 1
            READINGS_STORED.labels(source="demo").inc()

    def _tick_sim(self, now: float) -> None:
        last = self._ingestor.last_received_at
        if last is None:
            mode = SimMode.NO_DATA
        elif now - last <= self._sim_stale_seconds:
            mode = SimMode.LIVE
        else:
            mode = SimMode.IDLE

        if mode is self._sim_mode:
            return
        self._sim_mode = mode
        if mode is SimMode.LIVE:
            logger.info("[Simulink] Stream live")
            self._broadcaster.publish_status(StatusLevel.INFO, "Simulink stream live")
        elif mode is SimMode.IDLE:
            logger.info("[Simulink] Stream idle")
            self._broadcaster.publish_status(
                StatusLevel.WARNING,
                f"Simulink stream idle - no samples for {self._sim_stale_seconds:g}s",
            )

    async def start(self) -> None:
        """Inicia el bucle en background."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop(), name="mode-arbiter")
        logger.info("[Arbiter] Started tick=%.1fs", self._tick_seconds)

    async def stop(self) -> None:
        """Detiene el bucle; no se genera nada después de volver."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("[Arbiter] Stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                self.tick()
            except Exception as e:
                logger.exception("[Arbiter] Tick failed: %s", e)
            await asyncio.sleep(self._tick_seconds)
