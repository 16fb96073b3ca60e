"""
Client Session
==============

The single owned instance of client state.

A ClientSession holds everything the connection lifecycle needs: the target
URL, the registration identity, the live transport handle and the two
connection timers. It is created once per FrameRelayClient and mutated for
the lifetime of that client; ``start()`` reconfigures it in place.

Only the ConnectionManager reads or replaces ``transport``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from frame_relay.stream.timers import PeriodicTimer, TimerSlot
    from frame_relay.stream.transport import Transport


class ConnectionState(str, Enum):
    """
    Connection lifecycle states.

    Disconnected -> Connecting -> Open -> Closed/Errored -> Disconnected,
    with a reconnect scheduled on every Closed/Errored transition.
    """

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    ERRORED = "ERRORED"


@dataclass
class DeviceIdentity:
    """Registration identity announced to the controller."""

    device_id: str = ""
    device_descriptor: str = ""
    project_name: str = ""
    phone_num: str = ""


@dataclass
class ClientSession:
    """
    Mutable per-client state.

    Attributes:
        url: WebSocket URL of the controller ("" until configured)
        identity: Registration identity
        state: Current connection state
        transport: Live transport handle, exclusively owned
        reconnect_timer: One-shot reconnect timer slot
        heartbeat_timer: Periodic heartbeat timer
    """

    url: str = ""
    identity: DeviceIdentity = field(default_factory=DeviceIdentity)
    state: ConnectionState = ConnectionState.DISCONNECTED
    transport: Optional["Transport"] = None
    reconnect_timer: Optional["TimerSlot"] = None
    heartbeat_timer: Optional["PeriodicTimer"] = None

    def configure(self, url: str, identity: DeviceIdentity) -> None:
        """Replace the target and identity; the transport is left to the caller."""
        self.url = url
        self.identity = identity

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN
