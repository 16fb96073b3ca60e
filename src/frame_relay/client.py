"""
Frame Relay Client
==================

Public entry point for embedding hosts.

Wires the components together around one ClientSession:

    host -> send_image -> ThrottleScheduler -> ImageEncoder
                                  |
                                  v
                         ConnectionManager -> transport
                                  |
    host <- on_server_json <- CommandDispatcher <- inbound text

Example:
    from frame_relay import FrameRelayClient

    async def main():
        client = FrameRelayClient()
        client.on_server_json = lambda command: print(command.action)
        client.start("10.0.0.5", 9000, "dev-1", "pixel-7", "demo", "555-0100")

        while True:
            client.send_image(grab_frame())  # numpy BGR array
            await asyncio.sleep(0.1)
"""

import asyncio
import logging
from typing import Any, Optional

from frame_relay.config import Settings, get_settings
from frame_relay.imaging.backend import CapabilityBackend, resolve_backend
from frame_relay.imaging.encoder import ImageEncoder
from frame_relay.imaging.source import RawFrameSource, as_frame_source
from frame_relay.models.session import ClientSession, ConnectionState, DeviceIdentity
from frame_relay.protocol.codec import build_ws_url
from frame_relay.protocol.dispatcher import CommandDispatcher, CommandHandler
from frame_relay.stream.connection import ConnectionManager
from frame_relay.stream.scheduler import ThrottleScheduler
from frame_relay.stream.transport import (
    Transport,
    TransportFactory,
    TransportHandlers,
    WebSocketTransport,
)


logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


class FrameRelayClient:
    """
    Resilient frame-streaming client for a single controller session.

    Must be constructed inside a running event loop unless ``loop`` is
    given; all callbacks run on that loop.

    Attributes:
        settings: Effective configuration
        session: The owned client state
        connection: Connection lifecycle manager
        scheduler: Throttled frame sender
        dispatcher: Inbound command router
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend: Optional[CapabilityBackend] = None,
        loop: Optional[Any] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Configuration (default: get_settings())
            backend: Capability backend (default: resolved from settings)
            loop: Event loop (default: the running loop)
            transport_factory: Transport constructor (default: WebSocketTransport)
        """
        self.settings = settings or get_settings()
        self._loop = loop or asyncio.get_running_loop()

        imaging = self.settings.imaging
        conn = self.settings.connection

        self.session = ClientSession()
        self.dispatcher = CommandDispatcher()
        self.connection = ConnectionManager(
            session=self.session,
            loop=self._loop,
            transport_factory=transport_factory or self._create_transport,
            on_message=self.dispatcher.handle_payload,
            reconnect_delay=conn.reconnect_delay_seconds,
            heartbeat_interval=conn.heartbeat_interval_seconds,
        )
        self.encoder = ImageEncoder(
            backend=backend or resolve_backend(imaging.backend),
            scale_candidates=imaging.scale_candidates,
            quality_candidates=imaging.quality_candidates,
        )
        self.scheduler = ThrottleScheduler(
            connection=self.connection,
            encoder=self.encoder,
            loop=self._loop,
            throttle_interval=imaging.throttle_ms / 1000.0,
            max_bytes=imaging.max_image_bytes,
            initial_scale=imaging.initial_scale,
            initial_quality=imaging.initial_quality,
        )
        self.connection.add_open_listener(self.scheduler.flush)

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    @property
    def on_server_json(self) -> Optional[CommandHandler]:
        """Host handler receiving every inbound command, replacing built-ins."""
        return self.dispatcher.override

    @on_server_json.setter
    def on_server_json(self, handler: Optional[CommandHandler]) -> None:
        self.dispatcher.override = handler

    def start(
        self,
        server_ip: Any,
        port: Any,
        device_id: Any,
        device_descriptor: Any,
        project_name: Any,
        phone_num: Any,
    ) -> None:
        """
        (Re)configure the session and connect.

        All arguments are coerced to text. Any previous transport and pending
        reconnect are superseded.
        """
        url = build_ws_url(_as_text(server_ip), _as_text(port))
        identity = DeviceIdentity(
            device_id=_as_text(device_id),
            device_descriptor=_as_text(device_descriptor),
            project_name=_as_text(project_name),
            phone_num=_as_text(phone_num),
        )
        self.session.configure(url, identity)
        logger.info(f"Starting client for device {identity.device_id!r} -> {url}")

        self.connection.cancel_reconnect()
        self.connection.connect()

    def send_image(self, source_or_bytes: Any) -> None:
        """
        Send an image to the controller.

        Args:
            source_or_bytes: Encoded bytes (sent immediately, unthrottled) or
                a raster source / drawable object (throttled and encoded
                within the byte budget). Pending sources are sent once loaded.
        """
        source = as_frame_source(source_or_bytes)
        if source is None:
            return

        if isinstance(source, RawFrameSource):
            self.connection.send(source.payload)
            return

        if not source.complete:
            source.set_load_callback(self.scheduler.request_send)
            return

        self.scheduler.request_send(source)

    def close(self) -> None:
        """Stop sending, cancel all timers and drop the connection."""
        self.scheduler.cancel()
        self.connection.shutdown()
        logger.info("Client closed")

    def metrics(self) -> dict:
        """Combined component metrics."""
        return {
            "state": self.state.value,
            "connection": self.connection.metrics.to_dict(),
            "scheduler": self.scheduler.metrics.to_dict(),
            "dispatcher": self.dispatcher.metrics.to_dict(),
        }

    def _create_transport(self, url: str, handlers: TransportHandlers) -> Transport:
        conn = self.settings.connection
        return WebSocketTransport(
            url,
            handlers,
            loop=self._loop,
            ping_interval=conn.ping_interval_seconds,
            open_timeout=conn.open_timeout_seconds,
        )

    async def __aenter__(self) -> "FrameRelayClient":
        return self

    async def __aexit__(self, *args) -> None:
        self.close()
