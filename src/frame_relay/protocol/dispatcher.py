"""
Command Dispatcher
==================

Routes inbound control messages to the host.

Routing:
    1. If the host installed an override handler, EVERY parsed message goes
       to it and nothing else runs.
    2. Otherwise built-in actions (capture image, start/stop control) are
       accepted as no-op hooks.
    3. Anything else is logged for diagnostics.
"""

import logging
from typing import Callable, Optional, Union

from frame_relay.models.messages import BuiltinAction, ServerCommand
from frame_relay.protocol.codec import decode_inbound


logger = logging.getLogger(__name__)


CommandHandler = Callable[[ServerCommand], None]


class DispatcherMetrics:
    """Metrics for CommandDispatcher observability."""

    __slots__ = (
        "received",
        "ignored_binary",
        "parse_errors",
        "overridden",
        "builtin",
        "unrecognized",
    )

    def __init__(self) -> None:
        self.received: int = 0
        self.ignored_binary: int = 0
        self.parse_errors: int = 0
        self.overridden: int = 0
        self.builtin: int = 0
        self.unrecognized: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {name: getattr(self, name) for name in self.__slots__}


class CommandDispatcher:
    """
    Dispatches inbound payloads to an override handler or built-in hooks.

    Attributes:
        override: Host handler receiving every message, or None
        metrics: Operational metrics
    """

    def __init__(self, override: Optional[CommandHandler] = None) -> None:
        self.override = override
        self.metrics = DispatcherMetrics()
        self._builtin_handlers = {
            BuiltinAction.CAPTURE_IMAGE: self._on_capture_image,
            BuiltinAction.START_CONTROL: self._on_start_control,
            BuiltinAction.STOP_CONTROL: self._on_stop_control,
        }

    def handle_payload(self, payload: Union[str, bytes, bytearray]) -> None:
        """Decode a raw transport payload and dispatch it."""
        self.metrics.received += 1
        if not isinstance(payload, str):
            self.metrics.ignored_binary += 1
            return

        command = decode_inbound(payload)
        if command is None:
            self.metrics.parse_errors += 1
            return

        self.dispatch(command)

    def dispatch(self, command: ServerCommand) -> None:
        """Route a parsed command."""
        if self.override is not None:
            self.metrics.overridden += 1
            try:
                self.override(command)
            except Exception:
                logger.exception(f"Server command handler failed for action {command.action!r}")
            return

        action = command.builtin
        if action is not None:
            self.metrics.builtin += 1
            self._builtin_handlers[action](command)
            return

        self.metrics.unrecognized += 1
        logger.info(f"Unhandled server message: {command.raw_fields}")

    # The host acts on these by installing an override handler.

    def _on_capture_image(self, command: ServerCommand) -> None:
        logger.debug("Capture image requested")

    def _on_start_control(self, command: ServerCommand) -> None:
        logger.debug("Start control requested")

    def _on_stop_control(self, command: ServerCommand) -> None:
        logger.debug("Stop control requested")
