"""
Protocol Module
===============

Wire format and inbound routing for controller messages.

Components:
    - codec: URL building, outbound JSON, inbound parsing
    - CommandDispatcher: Override-or-builtin routing of inbound commands
"""

from frame_relay.protocol.codec import (
    build_ws_url,
    decode_inbound,
    encode_heartbeat,
    encode_register,
)
from frame_relay.protocol.dispatcher import CommandDispatcher, CommandHandler, DispatcherMetrics

__all__ = [
    "build_ws_url",
    "decode_inbound",
    "encode_heartbeat",
    "encode_register",
    "CommandDispatcher",
    "CommandHandler",
    "DispatcherMetrics",
]
