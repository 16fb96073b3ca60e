"""
Data Models
===========

Models shared by the frame relay components.

Models:
    Messages:
        - RegisterMessage: Registration announced on every open
        - HeartbeatMessage: Periodic keep-alive
        - ServerCommand: Inbound control message with resolved action
        - BuiltinAction: Actions recognised without a host handler

    Session:
        - ConnectionState: Connection lifecycle states
        - DeviceIdentity: Registration identity
        - ClientSession: The single owned client state
"""

from frame_relay.models.messages import (
    UNKNOWN_ACTION,
    BuiltinAction,
    HeartbeatMessage,
    RegisterMessage,
    ServerCommand,
)
from frame_relay.models.session import ClientSession, ConnectionState, DeviceIdentity

__all__ = [
    # Messages
    "UNKNOWN_ACTION",
    "BuiltinAction",
    "RegisterMessage",
    "HeartbeatMessage",
    "ServerCommand",
    # Session
    "ConnectionState",
    "DeviceIdentity",
    "ClientSession",
]
