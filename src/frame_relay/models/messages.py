"""
Control Message Schema
======================

Pydantic models for the JSON control messages exchanged with the controller.

Outbound Contract:
    {"type": "register", "device_id": "...", "ac": "...", "device": "...",
     "obj": "...", "phoneNum": "..."}

    {"type": "heartbeat", "ts": 1707321234567}

Inbound Contract:
    Any JSON object. The action identifier is taken from the ``action``
    field, falling back to ``type``, and becomes "unknown" when neither
    is present.

Frames are not modelled here: they travel as raw binary messages with no
envelope.
"""

from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


UNKNOWN_ACTION = "unknown"


class BuiltinAction(str, Enum):
    """
    Actions the client recognises without a host handler.

    Values are the controller's wire vocabulary. None of them has a built-in
    side effect; the host reacts to them by installing a handler and calling
    ``send_image``.

    Attributes:
        CAPTURE_IMAGE: Controller asks for a single snapshot
        START_CONTROL: Controller asks the host to start streaming frames
        STOP_CONTROL: Controller asks the host to stop streaming frames
    """

    CAPTURE_IMAGE = "截取图片"
    START_CONTROL = "开始控制"
    STOP_CONTROL = "停止控制"


class RegisterMessage(BaseModel):
    """
    Registration sent once after every successful open.

    ``ac`` duplicates ``device_id``; the controller reads either.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["register"] = "register"
    device_id: str
    device_alias: str = Field(..., serialization_alias="ac")
    device_descriptor: str = Field(..., serialization_alias="device")
    project_name: str = Field(..., serialization_alias="obj")
    phone_num: str = Field(..., serialization_alias="phoneNum")


class HeartbeatMessage(BaseModel):
    """Periodic keep-alive carrying the sender's wall clock in epoch ms."""

    type: Literal["heartbeat"] = "heartbeat"
    ts: int = Field(..., ge=0, description="Epoch milliseconds")


class ServerCommand(BaseModel):
    """
    Inbound control message from the controller.

    Attributes:
        action: Resolved action identifier
        raw_fields: The full decoded JSON object, unmodified
    """

    action: str
    raw_fields: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ServerCommand":
        """Build a command from a decoded JSON object."""
        action = data.get("action") or data.get("type") or UNKNOWN_ACTION
        return cls(action=str(action), raw_fields=data)

    @property
    def builtin(self) -> Optional[BuiltinAction]:
        """The matching BuiltinAction, or None."""
        try:
            return BuiltinAction(self.action)
        except ValueError:
            return None
