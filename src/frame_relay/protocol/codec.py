"""
Protocol Codec
==============

Serialization of control messages to and from the controller.

Control messages are JSON text frames; image frames are raw binary frames.
There is no envelope: the payload type alone tells them apart.

Design Rules:
    - Binary inbound payloads are NOT control messages and are ignored
    - Malformed JSON is dropped without surfacing an error
    - Outbound JSON keys follow the controller's wire names
"""

import json
import logging
import time
from typing import Optional, Union

from frame_relay.models.messages import HeartbeatMessage, RegisterMessage, ServerCommand
from frame_relay.models.session import DeviceIdentity


logger = logging.getLogger(__name__)


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = "0"


def build_ws_url(ip: Optional[str], port: Optional[str]) -> str:
    """
    Build the controller WebSocket URL.

    Blank values (after trimming) fall back to 127.0.0.1 and port 0.

    Example:
        >>> build_ws_url(" 10.0.0.5 ", "9000")
        'ws://10.0.0.5:9000/'
    """
    host = (ip or "").strip() or DEFAULT_HOST
    port = (port or "").strip() or DEFAULT_PORT
    return f"ws://{host}:{port}/"


def encode_register(identity: DeviceIdentity) -> str:
    """Serialize the registration message for an identity."""
    message = RegisterMessage(
        device_id=identity.device_id,
        device_alias=identity.device_id,
        device_descriptor=identity.device_descriptor,
        project_name=identity.project_name,
        phone_num=identity.phone_num,
    )
    return json.dumps(message.model_dump(by_alias=True), ensure_ascii=False)


def encode_heartbeat(ts_ms: Optional[int] = None) -> str:
    """Serialize a heartbeat stamped with ts_ms (default: now, epoch ms)."""
    if ts_ms is None:
        ts_ms = int(time.time() * 1000)
    return HeartbeatMessage(ts=ts_ms).model_dump_json()


def decode_inbound(payload: Union[str, bytes, bytearray, None]) -> Optional[ServerCommand]:
    """
    Parse an inbound payload into a ServerCommand.

    Args:
        payload: Raw message received from the transport

    Returns:
        ServerCommand, or None for binary, empty, malformed or non-object
        payloads
    """
    if not isinstance(payload, str) or not payload:
        return None

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.debug(f"Dropping malformed control message: {e}")
        return None

    if not isinstance(data, dict):
        logger.debug(f"Dropping non-object control message: {type(data).__name__}")
        return None

    return ServerCommand.from_json(data)
