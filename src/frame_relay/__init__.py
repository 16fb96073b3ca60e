"""
Frame Relay
===========

Resilient WebSocket client that keeps a session with a remote controller and
streams JPEG frames under a byte budget and a minimum send interval.

Components:
    - stream: Connection state machine, heartbeat and throttled sender
    - imaging: Capability backends and the compress-to-budget search
    - protocol: Wire codec and inbound command dispatch
    - models: Session state and control message schemas

Example:
    from frame_relay import FrameRelayClient

    client = FrameRelayClient()
    client.start("10.0.0.5", "9000", "dev-1", "pixel-7", "demo", "555-0100")
    client.send_image(frame)
"""

__version__ = "0.1.0"

from frame_relay.client import FrameRelayClient
from frame_relay.imaging.source import RasterSource, RawFrameSource
from frame_relay.models.messages import BuiltinAction, ServerCommand
from frame_relay.models.session import ConnectionState
from frame_relay.protocol.codec import build_ws_url

__all__ = [
    "__version__",
    "FrameRelayClient",
    "RasterSource",
    "RawFrameSource",
    "BuiltinAction",
    "ServerCommand",
    "ConnectionState",
    "build_ws_url",
]
