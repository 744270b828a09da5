from .event_types import MessageType, make_message

__all__ = ["MessageType", "make_message"]
