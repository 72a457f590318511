"""Contenedor de las instancias del pipeline.

Se construye una vez por proceso (o por app en tests) y se pasa por
referencia a endpoints y transportes vía ``app.state.runtime``; no hay
singletons de módulo.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from common.config import Settings

from .arbiter import ModeArbiter
from .broadcast import Broadcaster
from .core.domain import ExternalSample, Reading, SerialConfig
from .core.history import BoundedHistory
from .demo.generator import FallbackGenerator
from .device import DeviceLink, DeviceLineParser, list_serial_ports, serial_transport_factory
from .device.device_link import TransportFactory
from .simulink.ingestor import SampleIngestor

logger = logging.getLogger(__name__)


class MonitorRuntime:
    """Dueño de historiales, broadcaster, enlace serie, ingestor y árbitro."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport_factory: Optional[TransportFactory] = None,
        port_lister: Callable[[], List[str]] = list_serial_ports,
    ) -> None:
        self.settings = settings

        self.readings: BoundedHistory[Reading] = BoundedHistory(settings.readings_history_size)
        self.samples: BoundedHistory[ExternalSample] = BoundedHistory(settings.sim_history_size)

        self.broadcaster = Broadcaster(
            self.readings,
            self.samples,
            history_seed=settings.ws_history_seed,
            # history + bienvenida + muestras deben caber en la cola del cliente
            sample_seed=max(settings.ws_client_queue_size - 2, 0),
        )
        self.parser = DeviceLineParser()
        self.link = DeviceLink(
            SerialConfig(settings.serial_port, settings.serial_baud),
            self.readings,
            self.broadcaster,
            parser=self.parser,
            transport_factory=transport_factory or serial_transport_factory(settings.serial_read_timeout),
            port_lister=port_lister,
            reconnect_delay=settings.reconnect_delay_seconds,
        )
        self.ingestor = SampleIngestor(self.samples, self.broadcaster)
        self.generator = FallbackGenerator()
        self.arbiter = ModeArbiter(
            self.link,
            self.readings,
            self.broadcaster,
            self.generator,
            self.ingestor,
            tick_seconds=settings.arbiter_tick_seconds,
            demo_interval=settings.demo_interval_seconds,
            sim_stale_seconds=settings.sim_stale_seconds,
            demo_enabled=settings.demo_mode_enabled,
        )

    async def start(self) -> None:
        if self.settings.serial_autoconnect:
            connected = await self.link.connect()
            if not connected:
                logger.warning("[Server] Serial not connected, falling back to demo readings")
        else:
            logger.info("[Server] Serial autoconnect disabled")
        await self.arbiter.start()
        logger.info("[Simulink] Data streaming endpoint ready at POST /data")

    async def stop(self) -> None:
        logger.info("[Server] Shutting down...")
        await self.arbiter.stop()
        await self.link.shutdown()
        self.broadcaster.close_all()
        logger.info("[Server] Goodbye!")
