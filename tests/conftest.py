"""Fixtures compartidos: historiales, broadcaster y dobles del puerto serie."""

import asyncio
import queue
from typing import Any, Dict, List, Optional

import pytest

from monitor_api.broadcast import Broadcaster
from monitor_api.core.domain import SerialConfig
from monitor_api.core.history import BoundedHistory
from monitor_api.device import TransportError


# =============================================================================
# DOBLES
# =============================================================================

class FakeTransport:
    """Puerto serie en memoria.

    Se alimenta con ``feed``: un str es una línea, None simula el cierre
    del puerto y una excepción se lanza desde ``readline``.
    """

    def __init__(self, config: SerialConfig, *, fail_open: Optional[str] = None):
        self.config = config
        self.fail_open = fail_open
        self.opened = False
        self.closed = False
        self._lines: "queue.Queue[Any]" = queue.Queue()

    @property
    def is_open(self) -> bool:
        return self.opened and not self.closed

    def open(self) -> None:
        if self.fail_open:
            raise TransportError(self.fail_open)
        self.opened = True

    def feed(self, item: Any) -> None:
        self._lines.put(item)

    def readline(self) -> Optional[str]:
        if self.closed:
            return None
        try:
            item = self._lines.get(timeout=0.02)
        except queue.Empty:
            return ""
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class FakeTransportFactory:
    """Crea FakeTransport; ``available=False`` hace fallar la apertura."""

    def __init__(self):
        self.available = True
        self.error = "No such file or directory"
        self.created: List[FakeTransport] = []

    def __call__(self, config: SerialConfig) -> FakeTransport:
        transport = FakeTransport(config, fail_open=None if self.available else self.error)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


class RecordingClient:
    """Cliente que guarda todo lo que recibe, sin cola ni bomba."""

    def __init__(self, *, accept: bool = True):
        self.messages: List[Dict[str, Any]] = []
        self.accept = accept
        self.is_open = True

    def offer(self, message: Dict[str, Any]) -> bool:
        if not self.accept:
            return False
        self.messages.append(message)
        return True

    def close(self) -> None:
        self.is_open = False

    @property
    def types(self) -> List[str]:
        return [m["type"] for m in self.messages]

    def statuses(self) -> List[Dict[str, Any]]:
        return [m for m in self.messages if m["type"] == "status"]


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def readings() -> BoundedHistory:
    return BoundedHistory(500)


@pytest.fixture
def samples() -> BoundedHistory:
    return BoundedHistory(2000)


@pytest.fixture
def broadcaster(readings, samples) -> Broadcaster:
    return Broadcaster(readings, samples, history_seed=100)


@pytest.fixture
def recorder() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def client_factory():
    """Para tests que necesitan varios clientes."""
    return RecordingClient


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def wait_until():
    """Espera (sin bloquear el loop) a que se cumpla una condición."""
    return _wait_until
