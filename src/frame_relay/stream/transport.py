"""
Transport
=========

Callback-style WebSocket transport used by the ConnectionManager.

The ConnectionManager never awaits anything: it constructs a transport,
binds a TransportHandlers bundle, and reacts to open/message/error/close
callbacks delivered on the event loop. This module adapts the ``websockets``
client to that model.

Lifecycle of a WebSocketTransport:
    construct  -> URI validated (TransportConstructionError if invalid),
                  connect task started
    on_open    -> handshake complete, sends allowed
    on_message -> one per received frame (str for text, bytes for binary)
    on_error   -> handshake failure or abnormal close
    on_close   -> always last, exactly once

Design Rules:
    - detach() drops every callback; a detached transport is silent
    - close() is idempotent and never raises
    - send() schedules the write and never awaits it
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Set, Union

import websockets
from websockets.exceptions import ConnectionClosedOK, InvalidURI
from websockets.uri import parse_uri


logger = logging.getLogger(__name__)


Payload = Union[str, bytes]


class TransportConstructionError(Exception):
    """Raised when a transport cannot be created for a URL."""
    pass


@dataclass
class TransportHandlers:
    """Callbacks a transport delivers its events to."""

    on_open: Callable[[], None]
    on_message: Callable[[Payload], None]
    on_error: Callable[[Optional[BaseException]], None]
    on_close: Callable[[], None]


class Transport(Protocol):
    """
    Protocol for transports owned by the ConnectionManager.

    Implementations:
        - WebSocketTransport (websockets library)
        - test doubles driven by the test suite
    """

    @property
    def ready(self) -> bool:
        """Whether send() may be called."""
        ...

    def send(self, payload: Payload) -> None:
        """Queue a text or binary message. May raise on failure."""
        ...

    def close(self) -> None:
        """Begin closing; on_close follows unless detached."""
        ...

    def detach(self) -> None:
        """Drop all callbacks so no further events are delivered."""
        ...


TransportFactory = Callable[[str, TransportHandlers], Transport]


class WebSocketTransport:
    """
    WebSocket transport backed by ``websockets.connect``.

    Attributes:
        url: WebSocket URL
        ready: True between on_open and close()
    """

    def __init__(
        self,
        url: str,
        handlers: TransportHandlers,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        ping_interval: Optional[float] = 20.0,
        open_timeout: float = 10.0,
    ) -> None:
        """
        Validate the URL and start connecting.

        Args:
            url: ws:// or wss:// URL of the controller
            handlers: Event callbacks
            loop: Event loop to run on (default: running loop)
            ping_interval: Protocol-level ping interval, None to disable
            open_timeout: Handshake timeout in seconds

        Raises:
            TransportConstructionError: If the URL is invalid or no loop runs
        """
        try:
            parse_uri(url)
        except InvalidURI as e:
            raise TransportConstructionError(f"Invalid WebSocket URL {url!r}: {e}") from e

        try:
            self._loop = loop or asyncio.get_running_loop()
        except RuntimeError as e:
            raise TransportConstructionError("No running event loop") from e

        self.url = url
        self._handlers: Optional[TransportHandlers] = handlers
        self._ping_interval = ping_interval
        self._open_timeout = open_timeout
        self._websocket: Optional[Any] = None
        self._closing: bool = False
        self._finished: bool = False
        self._pending_tasks: Set["asyncio.Task"] = set()
        self._task = self._loop.create_task(self._run())
        # A task cancelled before its first step never runs _run's finally.
        self._task.add_done_callback(lambda _: self._finish())

    @property
    def ready(self) -> bool:
        return self._websocket is not None and not self._closing

    def send(self, payload: Payload) -> None:
        if not self.ready:
            raise ConnectionError("WebSocket is not open")
        task = self._track(self._websocket.send(payload))
        task.add_done_callback(self._on_send_done)

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        if self._websocket is not None:
            self._track(self._websocket.close())
        else:
            self._task.cancel()

    def detach(self) -> None:
        self._handlers = None

    async def wait_closed(self) -> None:
        """Wait until the connection has ended and on_close was delivered."""
        await asyncio.wait({self._task})

    async def _run(self) -> None:
        """Connect and pump messages until the connection ends."""
        try:
            async with websockets.connect(
                self.url,
                ping_interval=self._ping_interval,
                open_timeout=self._open_timeout,
                close_timeout=5,
                max_size=None,
            ) as ws:
                if self._closing:
                    return
                self._websocket = ws
                logger.info(f"Connected to controller: {self.url}")
                self._emit("on_open")

                async for message in ws:
                    self._emit("on_message", message)

        except ConnectionClosedOK:
            logger.info("Connection closed normally")
        except asyncio.CancelledError:
            logger.debug(f"Connect to {self.url} cancelled")
        except Exception as e:
            logger.warning(f"Connection to {self.url} failed: {e}")
            self._emit("on_error", e)
        finally:
            self._finish()

    def _finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._websocket = None
        self._closing = True
        self._emit("on_close")

    def _track(self, coro: Any) -> "asyncio.Task":
        """Start coro as a task and hold a reference until it finishes."""
        task = self._loop.create_task(coro)
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)
        return task

    def _emit(self, event: str, *args: Any) -> None:
        handlers = self._handlers
        if handlers is None:
            return
        getattr(handlers, event)(*args)

    @staticmethod
    def _on_send_done(task: "asyncio.Task") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"WebSocket send failed: {error}")
