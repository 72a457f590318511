"""Tests del enlace serie: máquina de estados, lectura y reconexión.

Se usa un transporte en memoria (conftest.FakeTransport) y retardos de
reconexión cortos para no depender de hardware.
"""

import asyncio

import pytest

from monitor_api.core.domain import ConnectionState, SerialConfig
from monitor_api.device import DeviceLink, IllegalTransition, TransportError


VALID_LINE = '{"t_water":27.5,"t_air":28.1,"p_air":2.4,"p_water":3.1}'


@pytest.fixture
def make_link(readings, broadcaster, transport_factory):
    created = []

    def _make(reconnect_delay: float = 10.0, **kwargs) -> DeviceLink:
        link = DeviceLink(
            SerialConfig("FAKE0", 9600),
            readings,
            broadcaster,
            transport_factory=transport_factory,
            reconnect_delay=reconnect_delay,
            **kwargs,
        )
        created.append(link)
        return link

    return _make


# =============================================================================
# CONEXIÓN
# =============================================================================

class TestConnect:

    @pytest.mark.asyncio
    async def test_connect_success(self, make_link, broadcaster, recorder, transport_factory):
        link = make_link()
        broadcaster.register(recorder)

        assert link.state is ConnectionState.DISCONNECTED
        assert await link.connect() is True

        assert link.state is ConnectionState.OPEN
        assert link.is_connected()
        assert transport_factory.last.is_open
        assert recorder.statuses()[-1] == {"type": "status", "level": "info", "message": "Connected to FAKE0"}
        assert not link.has_pending_reconnect
        await link.shutdown()

    @pytest.mark.asyncio
    async def test_connect_failure_schedules_single_reconnect(
        self, make_link, broadcaster, recorder, transport_factory
    ):
        transport_factory.available = False
        link = make_link()
        broadcaster.register(recorder)

        assert await link.connect() is False
        assert link.state is ConnectionState.DISCONNECTED
        assert link.has_pending_reconnect
        assert recorder.statuses()[-1]["level"] == "error"
        assert recorder.statuses()[-1]["message"].startswith("Serial port not available:")

        first = link._reconnect_handle
        assert await link.connect() is False
        assert first.cancelled()
        assert link.has_pending_reconnect
        assert link._reconnect_handle is not first
        await link.shutdown()

    @pytest.mark.asyncio
    async def test_connect_closes_previous_transport(self, make_link, transport_factory):
        link = make_link()
        await link.connect()
        first = transport_factory.last

        assert await link.connect() is True
        assert first.closed
        assert transport_factory.last is not first
        assert link.state is ConnectionState.OPEN
        await link.shutdown()

    @pytest.mark.asyncio
    async def test_update_config_reopens_with_new_port(self, make_link, transport_factory):
        link = make_link()
        await link.connect()

        assert await link.update_config(SerialConfig("FAKE1", 115200)) is True
        assert link.config == SerialConfig("FAKE1", 115200)
        assert transport_factory.last.config.port == "FAKE1"
        assert transport_factory.created[0].closed
        await link.shutdown()

    @pytest.mark.asyncio
    async def test_close_cancels_pending_reconnect(self, make_link, transport_factory):
        transport_factory.available = False
        link = make_link()
        await link.connect()
        assert link.has_pending_reconnect

        await link.close()
        assert not link.has_pending_reconnect
        assert link.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_shutdown_blocks_further_connects(self, make_link, transport_factory):
        link = make_link()
        await link.connect()
        await link.shutdown()

        assert link.state is ConnectionState.DISCONNECTED
        assert transport_factory.last.closed
        assert await link.connect() is False
        assert not link.has_pending_reconnect


# =============================================================================
# LECTURA
# =============================================================================

class TestReadLoop:

    @pytest.mark.asyncio
    async def test_valid_lines_are_stored_and_broadcast(
        self, make_link, readings, broadcaster, recorder, transport_factory, wait_until
    ):
        link = make_link()
        await link.connect()
        broadcaster.register(recorder)

        transport = transport_factory.last
        transport.feed("DEBUG: boot")
        transport.feed("{broken")
        transport.feed(VALID_LINE)
        await wait_until(lambda: readings.count() == 1)

        assert readings.latest().water_temp == 27.5
        assert recorder.types.count("reading") == 1
        assert link.stats.lines_received == 3
        assert link.stats.readings_stored == 1
        await link.shutdown()

    @pytest.mark.asyncio
    async def test_feed_line_directly(self, make_link, readings):
        link = make_link()
        assert link.feed_line(VALID_LINE) is not None
        assert link.feed_line('{"t_water":"bad"}') is None
        assert readings.count() == 1

    @pytest.mark.asyncio
    async def test_transport_error_disconnects_and_reconnects(
        self, make_link, broadcaster, recorder, transport_factory, wait_until
    ):
        link = make_link(reconnect_delay=0.05)
        await link.connect()
        broadcaster.register(recorder)

        transport_factory.last.feed(TransportError("device disconnected"))
        await wait_until(lambda: len(transport_factory.created) == 2 and link.is_connected())

        assert transport_factory.created[0].closed
        messages = [s["message"] for s in recorder.statuses()]
        assert "Serial error: device disconnected" in messages
        assert messages[-1] == "Connected to FAKE0"
        assert link.stats.transport_errors == 1
        await link.shutdown()

    @pytest.mark.asyncio
    async def test_port_closed_is_a_warning(self, make_link, broadcaster, recorder, transport_factory, wait_until):
        link = make_link()
        await link.connect()
        broadcaster.register(recorder)

        transport_factory.last.feed(None)
        await wait_until(lambda: link.state is ConnectionState.DISCONNECTED)

        assert recorder.statuses()[-1] == {"type": "status", "level": "warning", "message": "Serial port closed"}
        assert link.has_pending_reconnect
        await link.shutdown()
        assert not link.has_pending_reconnect

    @pytest.mark.asyncio
    async def test_reconnect_keeps_retrying_until_available(self, make_link, transport_factory, wait_until):
        transport_factory.available = False
        link = make_link(reconnect_delay=0.02)
        await link.connect()

        await wait_until(lambda: len(transport_factory.created) >= 3)
        transport_factory.available = True
        await wait_until(link.is_connected)

        assert link.stats.connect_attempts >= 4
        await link.shutdown()


# =============================================================================
# ESTADOS Y DESCUBRIMIENTO
# =============================================================================

class TestStateTable:

    @pytest.mark.asyncio
    async def test_illegal_transition_raises(self, make_link):
        link = make_link()
        with pytest.raises(IllegalTransition):
            link._transition(ConnectionState.OPEN)

    @pytest.mark.asyncio
    async def test_list_endpoints(self, make_link):
        link = make_link(port_lister=lambda: ["/dev/ttyACM0", "/dev/ttyUSB0"])
        assert link.list_endpoints() == ["/dev/ttyACM0", "/dev/ttyUSB0"]

    @pytest.mark.asyncio
    async def test_list_endpoints_failure_is_empty(self, make_link):
        def broken():
            raise OSError("permission denied")

        link = make_link(port_lister=broken)
        assert link.list_endpoints() == []

    @pytest.mark.asyncio
    async def test_concurrent_connects_are_serialized(self, make_link, transport_factory):
        link = make_link()
        results = await asyncio.gather(link.connect(), link.connect(), link.connect())

        assert results == [True, True, True]
        assert link.state is ConnectionState.OPEN
        assert sum(1 for t in transport_factory.created if t.is_open) == 1
        await link.shutdown()

    @pytest.mark.asyncio
    async def test_failed_reconnect_task_is_logged(self, make_link, caplog):
        link = make_link()

        async def broken_connect(config, *, automatic):
            raise RuntimeError("unexpected state")

        link._connect = broken_connect
        with caplog.at_level("ERROR", logger="monitor_api.device.device_link"):
            link._on_reconnect_timer()
            task = link._reconnect_task
            await asyncio.wait([task])
            await asyncio.sleep(0)

        assert "Reconnect attempt failed: unexpected state" in caplog.text
        await link.shutdown()
