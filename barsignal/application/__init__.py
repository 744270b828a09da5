"""Application layer: emission loop and the publish/request/query boundaries."""

from .broadcaster import SignalBroadcaster, Subscription
from .message_handler import MessageHandler
from .query_service import QueryService
from .signal_emitter import SignalEmitter

__all__ = [
    "MessageHandler",
    "QueryService",
    "SignalBroadcaster",
    "SignalEmitter",
    "Subscription",
]
