"""Message types exchanged at the publish and request boundaries."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict


class MessageType(Enum):
    """Wire `type` field values."""
    # Server -> client
    SIGNAL = "signal"
    LOG = "log"
    INFO = "info"

    # Client -> server
    REQ_SIGNAL_NOW = "reqSignalNow"


def make_message(message_type: MessageType, data: Any, **extra: Any) -> Dict[str, Any]:
    """Build a `{"type": ..., "data": ...}` message mapping."""
    message: Dict[str, Any] = {"type": message_type.value, "data": data}
    message.update(extra)
    return message
