"""
Stream Module
=============

Connection lifecycle and rate-limited frame delivery.

This module provides the uplink layer of the frame relay client:
    - TimerSlot / PeriodicTimer: Single-slot timers on the event loop
    - WebSocketTransport: Callback-style adapter over ``websockets``
    - ConnectionManager: Connect/reconnect state machine with heartbeat
    - ThrottleScheduler: Latest-frame-wins, rate-limited sender

Example:
    manager = ConnectionManager(session, loop, transport_factory)
    scheduler = ThrottleScheduler(manager, encoder, loop)
    manager.add_open_listener(scheduler.flush)

    manager.connect()
    scheduler.request_send(RasterSource(frame))
"""

from frame_relay.stream.timers import PeriodicTimer, TimerSlot
from frame_relay.stream.transport import (
    Transport,
    TransportConstructionError,
    TransportFactory,
    TransportHandlers,
    WebSocketTransport,
)
from frame_relay.stream.connection import ConnectionManager, ConnectionMetrics
from frame_relay.stream.scheduler import SchedulerMetrics, ThrottleScheduler


__all__ = [
    "PeriodicTimer",
    "TimerSlot",
    "Transport",
    "TransportConstructionError",
    "TransportFactory",
    "TransportHandlers",
    "WebSocketTransport",
    "ConnectionManager",
    "ConnectionMetrics",
    "SchedulerMetrics",
    "ThrottleScheduler",
]
