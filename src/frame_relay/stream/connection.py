"""
Connection Manager
==================

Owns the controller transport and drives its lifecycle.

State machine:

    DISCONNECTED --connect()--> CONNECTING --open--> OPEN
         ^                           |                 |
         |                 construction failure   close / error
         |                           v                 v
         +------ reconnect after delay ------ CLOSED / ERRORED

On OPEN:
    - send the registration message
    - start the heartbeat
    - notify open listeners (the throttle scheduler flushes)

On CLOSED / ERRORED:
    - stop the heartbeat
    - schedule exactly one reconnect (any earlier one is cancelled)
    - errors additionally force-close the transport

Design Rules:
    - The transport is owned here; everything else sends via send()
    - Callbacks are bound to the transport that produced them; events from a
      superseded transport are ignored
    - Send failures are swallowed; close/error events drive recovery
"""

import logging
from typing import Any, Callable, List, Optional

from frame_relay.models.session import ClientSession, ConnectionState
from frame_relay.protocol.codec import encode_heartbeat, encode_register
from frame_relay.stream.timers import PeriodicTimer, TimerSlot
from frame_relay.stream.transport import Payload, Transport, TransportFactory, TransportHandlers


logger = logging.getLogger(__name__)


class ConnectionMetrics:
    """Metrics for ConnectionManager observability."""

    __slots__ = (
        "connect_attempts",
        "construction_failures",
        "opens",
        "closes",
        "errors",
        "reconnects_scheduled",
        "messages_sent",
        "sends_discarded",
        "heartbeats_sent",
    )

    def __init__(self) -> None:
        self.connect_attempts: int = 0
        self.construction_failures: int = 0
        self.opens: int = 0
        self.closes: int = 0
        self.errors: int = 0
        self.reconnects_scheduled: int = 0
        self.messages_sent: int = 0
        self.sends_discarded: int = 0
        self.heartbeats_sent: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {name: getattr(self, name) for name in self.__slots__}


class ConnectionManager:
    """
    Connection lifecycle for a single ClientSession.

    Attributes:
        session: The owned client state
        reconnect_delay: Seconds between loss and the next connect attempt
        heartbeat_interval: Seconds between heartbeats while open
        metrics: Operational metrics

    Example:
        manager = ConnectionManager(session, loop, transport_factory)
        manager.add_open_listener(scheduler.flush)
        manager.connect()
    """

    def __init__(
        self,
        session: ClientSession,
        loop: Any,
        transport_factory: TransportFactory,
        on_message: Optional[Callable[[Payload], None]] = None,
        reconnect_delay: float = 10.0,
        heartbeat_interval: float = 30.0,
    ) -> None:
        """
        Initialize connection manager.

        Args:
            session: Client session to drive
            loop: Event loop providing call_later
            transport_factory: Builds a transport for (url, handlers)
            on_message: Receives every inbound payload
            reconnect_delay: Fixed reconnect delay in seconds
            heartbeat_interval: Heartbeat period in seconds
        """
        self.session = session
        self.reconnect_delay = reconnect_delay
        self.heartbeat_interval = heartbeat_interval
        self.metrics = ConnectionMetrics()

        self._transport_factory = transport_factory
        self._on_message = on_message
        self._open_listeners: List[Callable[[], None]] = []
        self._stopped: bool = False

        session.reconnect_timer = TimerSlot(loop, "reconnect")
        session.heartbeat_timer = PeriodicTimer(loop, "heartbeat")

    @property
    def state(self) -> ConnectionState:
        return self.session.state

    @property
    def is_open(self) -> bool:
        transport = self.session.transport
        return self.session.is_open and transport is not None and transport.ready

    def add_open_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback run after every successful open."""
        self._open_listeners.append(listener)

    # -----------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------

    def connect(self) -> None:
        """
        Replace the current transport with a fresh connection attempt.

        No-op until the session has a URL.
        """
        if not self.session.url:
            return

        self._stopped = False
        self._teardown_transport()
        self._stop_heartbeat()
        self._set_state(ConnectionState.CONNECTING)
        self.metrics.connect_attempts += 1

        holder: List[Transport] = []
        handlers = TransportHandlers(
            on_open=lambda: self._bound(holder, self._handle_open),
            on_message=lambda payload: self._bound(holder, self._handle_message, payload),
            on_error=lambda error: self._bound(holder, self._handle_error, error),
            on_close=lambda: self._bound(holder, self._handle_close),
        )

        try:
            transport = self._transport_factory(self.session.url, handlers)
        except Exception as e:
            self.metrics.construction_failures += 1
            logger.warning(f"Could not create transport for {self.session.url}: {e}")
            self.session.transport = None
            self._set_state(ConnectionState.DISCONNECTED)
            self._schedule_reconnect()
            return

        holder.append(transport)
        self.session.transport = transport

    def cancel_reconnect(self) -> None:
        """Cancel a pending reconnect, if any."""
        self.session.reconnect_timer.cancel()

    def shutdown(self) -> None:
        """Stop all timers and drop the transport; no reconnect follows."""
        self._stopped = True
        self.cancel_reconnect()
        self._stop_heartbeat()
        self._teardown_transport()
        self._set_state(ConnectionState.DISCONNECTED)

    # -----------------------------------------------------------------
    # Sending
    # -----------------------------------------------------------------

    def send(self, payload: Payload) -> bool:
        """
        Send a text or binary payload if the connection is open.

        Returns:
            True if the transport accepted the payload, False if it was
            discarded (not open, empty, or the send raised)
        """
        if not payload or not self.is_open:
            self.metrics.sends_discarded += 1
            return False
        try:
            self.session.transport.send(payload)
        except Exception as e:
            self.metrics.sends_discarded += 1
            logger.debug(f"Send failed: {e}")
            return False
        self.metrics.messages_sent += 1
        return True

    # -----------------------------------------------------------------
    # Transport events
    # -----------------------------------------------------------------

    def _bound(self, holder: List[Transport], handler: Callable, *args: Any) -> None:
        """Run handler only if the emitting transport is still current."""
        if not holder or holder[0] is not self.session.transport:
            logger.debug("Ignoring event from superseded transport")
            return
        handler(*args)

    def _handle_open(self) -> None:
        self.metrics.opens += 1
        self._set_state(ConnectionState.OPEN)
        self._send_register()
        self._start_heartbeat()
        for listener in list(self._open_listeners):
            try:
                listener()
            except Exception:
                logger.exception("Open listener failed")

    def _handle_message(self, payload: Payload) -> None:
        if self._on_message is not None:
            self._on_message(payload)

    def _handle_error(self, error: Optional[BaseException]) -> None:
        self.metrics.errors += 1
        self._set_state(ConnectionState.ERRORED)
        self._stop_heartbeat()
        self._schedule_reconnect()
        transport = self.session.transport
        if transport is not None:
            try:
                transport.close()
            except Exception as e:
                logger.debug(f"Close after error failed: {e}")

    def _handle_close(self) -> None:
        self.metrics.closes += 1
        self._set_state(ConnectionState.CLOSED)
        self._stop_heartbeat()
        self._schedule_reconnect()
        self._set_state(ConnectionState.DISCONNECTED)

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        if state != self.session.state:
            logger.info(f"Connection state: {self.session.state.value} -> {state.value}")
            self.session.state = state

    def _schedule_reconnect(self) -> None:
        if self._stopped:
            return
        self.metrics.reconnects_scheduled += 1
        logger.info(f"Reconnecting in {self.reconnect_delay:.1f}s")
        self.session.reconnect_timer.arm(self.reconnect_delay, self.connect)

    def _teardown_transport(self) -> None:
        transport = self.session.transport
        self.session.transport = None
        if transport is None:
            return
        try:
            transport.detach()
            transport.close()
        except Exception as e:
            logger.debug(f"Closing previous transport failed: {e}")

    def _send_register(self) -> None:
        if not self.send(encode_register(self.session.identity)):
            logger.warning("Registration could not be sent")

    def _start_heartbeat(self) -> None:
        self.session.heartbeat_timer.start(self.heartbeat_interval, self._heartbeat)

    def _stop_heartbeat(self) -> None:
        self.session.heartbeat_timer.stop()

    def _heartbeat(self) -> None:
        if not self.is_open:
            return
        if self.send(encode_heartbeat()):
            self.metrics.heartbeats_sent += 1
