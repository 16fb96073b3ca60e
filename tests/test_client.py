"""
Frame Relay Client Tests
========================

End-to-end wiring through the public facade with fake loop, transport and
backend.
"""

import json

import pytest

from conftest import make_surface
from frame_relay import FrameRelayClient
from frame_relay.imaging.source import RasterSource
from frame_relay.models.messages import BuiltinAction
from frame_relay.models.session import ConnectionState


@pytest.fixture
def client(settings, backend, loop, transports):
    return FrameRelayClient(
        settings=settings,
        backend=backend,
        loop=loop,
        transport_factory=transports,
    )


class TestStart:
    """Tests for start()."""

    def test_coerces_arguments_and_connects(self, client, transports):
        client.start(" 10.0.0.5 ", 9000, 42, "pixel-7", "demo", 5550100)

        assert transports.last.url == "ws://10.0.0.5:9000/"
        identity = client.session.identity
        assert identity.device_id == "42"
        assert identity.phone_num == "5550100"
        assert client.state == ConnectionState.CONNECTING

    def test_registers_on_open(self, client, transports):
        client.start("", "", "dev-1", "pixel-7", "demo", "555")
        transports.last.fire_open()

        assert json.loads(transports.last.texts[0]) == {
            "type": "register",
            "device_id": "dev-1",
            "ac": "dev-1",
            "device": "pixel-7",
            "obj": "demo",
            "phoneNum": "555",
        }

    def test_restart_supersedes_previous(self, client, transports, loop):
        client.start("10.0.0.1", "1", "a", "", "", "")
        first = transports.last
        first.fire_close()
        assert len(loop.pending) == 1

        client.start("10.0.0.2", "2", "b", "", "", "")

        assert loop.pending == []
        assert transports.last.url == "ws://10.0.0.2:2/"
        assert first.detached
        loop.advance(60.0)
        assert len(transports.created) == 2


class TestSendImage:
    """Tests for send_image()."""

    def test_raw_bytes_bypass_throttle(self, client, transports, backend):
        client.start("", "", "dev", "", "", "")
        transports.last.fire_open()

        client.send_image(b"\xff\xd8raw")
        client.send_image(bytearray(b"\xff\xd8raw2"))

        assert transports.last.frames == [b"\xff\xd8raw", b"\xff\xd8raw2"]
        assert backend.calls == []

    def test_raw_bytes_dropped_when_closed(self, client, transports):
        client.start("", "", "dev", "", "", "")

        client.send_image(b"\xff\xd8raw")

        assert transports.last.sent == []

    def test_raster_goes_through_scheduler(self, client, transports, loop):
        client.start("", "", "dev", "", "", "")
        transports.last.fire_open()

        client.send_image(make_surface(tag=9))
        loop.advance(0.0)

        assert transports.last.frames[0][0] == 9

    def test_pending_source_is_deferred_until_loaded(self, client, transports, loop):
        client.start("", "", "dev", "", "", "")
        transports.last.fire_open()
        source = RasterSource.pending()

        client.send_image(source)
        loop.advance(1.0)
        assert transports.last.frames == []

        source.load(make_surface(tag=4))
        loop.advance(0.0)
        assert transports.last.frames[0][0] == 4

    def test_none_is_ignored(self, client, transports):
        client.start("", "", "dev", "", "", "")
        transports.last.fire_open()

        client.send_image(None)

        assert transports.last.frames == []


class TestServerMessages:
    """Tests for the inbound hook."""

    def test_override_hook_receives_commands(self, client, transports):
        received = []
        client.on_server_json = received.append
        client.start("", "", "dev", "", "", "")
        transports.last.fire_open()

        transports.last.fire_message(
            json.dumps({"action": BuiltinAction.CAPTURE_IMAGE.value}, ensure_ascii=False)
        )
        transports.last.fire_message("{bad json")

        assert [c.builtin for c in received] == [BuiltinAction.CAPTURE_IMAGE]
        assert client.dispatcher.metrics.builtin == 0
        assert client.dispatcher.metrics.parse_errors == 1

    def test_hook_can_request_snapshot(self, client, transports, loop):
        client.on_server_json = lambda command: client.send_image(make_surface(tag=5))
        client.start("", "", "dev", "", "", "")
        transports.last.fire_open()

        transports.last.fire_message('{"type": "anything"}')
        loop.advance(0.0)

        assert transports.last.frames[0][0] == 5


class TestClose:
    """Tests for close() and metrics()."""

    def test_close_stops_everything(self, client, transports, loop):
        client.start("", "", "dev", "", "", "")
        transports.last.fire_open()
        client.send_image(make_surface())

        client.close()

        assert loop.pending == []
        assert client.state == ConnectionState.DISCONNECTED
        assert client.scheduler.pending is None

    def test_metrics_shape(self, client):
        metrics = client.metrics()

        assert metrics["state"] == "DISCONNECTED"
        assert set(metrics) == {"state", "connection", "scheduler", "dispatcher"}
