"""
Test Configuration
==================

Pytest fixtures and test doubles for the frame relay client.

    - FakeLoop: virtual clock with call_later / advance
    - FakeTransport: records sends, lets tests fire transport events
    - FakeBackend: capability backend with scripted payload sizes
"""

from types import SimpleNamespace

import pytest

from frame_relay.config import Settings
from frame_relay.imaging.backend import EncodingError
from frame_relay.imaging.source import RasterSource
from frame_relay.stream.transport import TransportConstructionError


class FakeHandle:
    """Cancellable handle returned by FakeLoop.call_later."""

    def __init__(self, when, seq, callback, args):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Deterministic event loop clock for timer-driven tests."""

    def __init__(self, start=1000.0):
        self.now = start
        self._handles = []
        self._seq = 0

    def time(self):
        return self.now

    def call_later(self, delay, callback, *args):
        self._seq += 1
        handle = FakeHandle(self.now + delay, self._seq, callback, args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self._handles if not h.cancelled and not h.fired]

    def advance(self, seconds):
        """Move the clock forward, firing due callbacks in order."""
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self.now = max(self.now, handle.when)
            handle.fired = True
            handle.callback(*handle.args)
        self.now = target


class FakeTransport:
    """Transport double; events are fired explicitly by tests."""

    def __init__(self, url, handlers):
        self.url = url
        self.handlers = handlers
        self.sent = []
        self.ready = False
        self.closed = False
        self.detached = False
        self.fail_sends = False
        self.calls = []

    @property
    def frames(self):
        return [p for p in self.sent if isinstance(p, bytes)]

    @property
    def texts(self):
        return [p for p in self.sent if isinstance(p, str)]

    def send(self, payload):
        if self.fail_sends:
            raise ConnectionError("send failed")
        self.sent.append(payload)

    def close(self):
        self.calls.append("close")
        self.closed = True
        self.ready = False

    def detach(self):
        self.calls.append("detach")
        self.detached = True

    # Event helpers call the handlers even after detach, like a late
    # event from a socket that was already replaced.

    def fire_open(self):
        self.ready = True
        self.handlers.on_open()

    def fire_message(self, payload):
        self.handlers.on_message(payload)

    def fire_error(self, error=None):
        self.handlers.on_error(error)

    def fire_close(self):
        self.ready = False
        self.handlers.on_close()


class FakeTransportFactory:
    """Builds FakeTransports and remembers them."""

    def __init__(self):
        self.created = []
        self.fail_next = 0

    def __call__(self, url, handlers):
        if self.fail_next:
            self.fail_next -= 1
            raise TransportConstructionError(f"cannot open {url}")
        transport = FakeTransport(url, handlers)
        self.created.append(transport)
        return transport

    @property
    def last(self):
        return self.created[-1]


def make_surface(width=1000, height=1000, tag=1):
    """Drawable object with explicit dimensions and an identifying tag."""
    return SimpleNamespace(width=width, height=height, tag=tag)


class FakeBackend:
    """
    Capability backend whose payload sizes are scripted.

    ``sizes`` maps (canvas width, quality) to a payload size; other
    combinations use ``default_size``. Payload bytes repeat the drawn
    surface's tag so tests can tell frames apart.
    """

    name = "fake"

    def __init__(self, sizes=None, default_size=1000, fail_qualities=(), fail_default=False):
        self.sizes = dict(sizes or {})
        self.default_size = default_size
        self.fail_qualities = set(fail_qualities)
        self.fail_default = fail_default
        self.no_canvas = False
        self.fail_draw = False
        self.calls = []

    def create_canvas(self, width, height):
        if self.no_canvas:
            return None
        return {"width": width, "height": height, "tag": 0}

    def draw(self, pixels, canvas):
        if self.fail_draw:
            raise EncodingError("cannot draw")
        canvas["tag"] = getattr(pixels, "tag", 0)

    def encode_jpeg(self, canvas, quality=None):
        self.calls.append((canvas["width"], canvas["height"], quality))
        if quality is None:
            if self.fail_default:
                raise EncodingError("default quality failed")
        elif quality in self.fail_qualities:
            raise EncodingError(f"quality {quality} failed")
        size = self.sizes.get((canvas["width"], quality), self.default_size)
        return bytes([canvas["tag"]]) * size

    def decode(self, data):
        return None


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def transports():
    return FakeTransportFactory()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def surface():
    return RasterSource(make_surface())
