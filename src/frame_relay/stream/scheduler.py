"""
Throttle Scheduler
==================

Coalescing, rate-limited frame sender.

Requests to send an image are NOT queued. The scheduler keeps a single
pending frame that each request overwrites, and one flush timer that each
request re-arms:

    wait = max(0, throttle_interval - (now - last_sent_at))

When the timer fires, the most recent source is encoded and sent. Anything
requested earlier but never flushed is discarded.

Design Rules:
    - At most one pending frame, at most one armed flush timer
    - Frames are dropped, never retried, when encoding misses the budget
    - Sends go through the ConnectionManager only
"""

import logging
from typing import Any, Optional

from frame_relay.imaging.encoder import ImageEncoder
from frame_relay.imaging.source import RasterSource
from frame_relay.stream.connection import ConnectionManager
from frame_relay.stream.timers import TimerSlot


logger = logging.getLogger(__name__)


class SchedulerMetrics:
    """Metrics for ThrottleScheduler observability."""

    __slots__ = (
        "requested",
        "coalesced",
        "sent",
        "dropped",
    )

    def __init__(self) -> None:
        self.requested: int = 0
        self.coalesced: int = 0
        self.sent: int = 0
        self.dropped: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {name: getattr(self, name) for name in self.__slots__}


class ThrottleScheduler:
    """
    Sends the latest requested frame at most once per throttle interval.

    Attributes:
        throttle_interval: Minimum seconds between two frame sends
        max_bytes: Byte budget per frame
        initial_scale: Scale of the first encoding attempt
        initial_quality: Quality of the first encoding attempt
        metrics: Operational metrics
    """

    def __init__(
        self,
        connection: ConnectionManager,
        encoder: ImageEncoder,
        loop: Any,
        throttle_interval: float = 0.8,
        max_bytes: int = 200 * 1024,
        initial_scale: float = 1.0,
        initial_quality: float = 0.92,
    ) -> None:
        self.throttle_interval = throttle_interval
        self.max_bytes = max_bytes
        self.initial_scale = initial_scale
        self.initial_quality = initial_quality
        self.metrics = SchedulerMetrics()

        self._connection = connection
        self._encoder = encoder
        self._loop = loop
        self._timer = TimerSlot(loop, "frame-flush")
        self._pending: Optional[RasterSource] = None
        self._last_sent_at: Optional[float] = None

    @property
    def pending(self) -> Optional[RasterSource]:
        """The frame awaiting flush, if any."""
        return self._pending

    @property
    def last_sent_at(self) -> Optional[float]:
        """Loop time of the last frame send attempt."""
        return self._last_sent_at

    def request_send(self, source: RasterSource) -> None:
        """
        Make source the pending frame and (re)arm the flush timer.

        Args:
            source: Raster source to send; replaces any unflushed request
        """
        self.metrics.requested += 1
        if self._pending is not None:
            self.metrics.coalesced += 1
        self._pending = source

        wait = 0.0
        if self._last_sent_at is not None:
            elapsed = self._loop.time() - self._last_sent_at
            wait = max(0.0, self.throttle_interval - elapsed)

        self._timer.arm(wait, self.flush)

    def flush(self) -> None:
        """Encode and send the pending frame if the connection is open."""
        if self._pending is None or not self._connection.is_open:
            return

        source, self._pending = self._pending, None

        payload = self._encoder.encode(source, self.initial_scale, self.initial_quality)
        if payload and len(payload) > self.max_bytes:
            logger.debug(
                f"Frame {source!r} is {len(payload)} bytes, "
                f"searching for <= {self.max_bytes}"
            )
            payload = self._encoder.compress_to_budget(source, self.max_bytes)

        if not payload or len(payload) > self.max_bytes:
            self.metrics.dropped += 1
            logger.debug(f"Dropping frame {source!r}: no payload within budget")
            return

        if self._connection.send(payload):
            self.metrics.sent += 1
        self._last_sent_at = self._loop.time()

    def cancel(self) -> None:
        """Cancel the flush timer and forget the pending frame."""
        self._timer.cancel()
        self._pending = None
