"""
Request boundary: client messages in, reply messages out.

Transport-agnostic. A websocket (or any other) layer passes each received
frame to handle() and sends back whatever it returns.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Sequence, Union

from barsignal.domain.events.event_types import MessageType, make_message
from barsignal.utils.logging_setup import get_logger
from barsignal.utils.timezone import now_utc, to_iso
from .signal_emitter import SignalEmitter

logger = get_logger(__name__)

RawMessage = Union[Dict[str, Any], str, bytes, bytearray]


class MessageHandler:
    """Handles `reqSignalNow` requests and produces the connection greeting."""

    def __init__(
        self,
        emitter: SignalEmitter,
        watch_list: Optional[Sequence[str]] = None,
        default_market: str = "binary",
        clock: Callable[[], datetime] = now_utc,
    ):
        self._emitter = emitter
        self._watch_list = [s.upper() for s in (watch_list or emitter.watch_list)]
        self._default_market = default_market
        self._clock = clock

    def welcome(self) -> Dict[str, Any]:
        """Greeting sent once per new connection."""
        return make_message(MessageType.INFO, "welcome", server_time=to_iso(self._clock()))

    def handle(self, raw: RawMessage) -> Optional[Dict[str, Any]]:
        """
        Process one client message.

        Returns:
            A `{"type": "signal", "data": ...}` reply for a successful
            reqSignalNow, otherwise None (unknown type, malformed input,
            insufficient data)
        """
        message = self._decode(raw)
        if message is None:
            return None

        msg_type = message.get("type")
        if msg_type != MessageType.REQ_SIGNAL_NOW.value:
            logger.debug(f"Ignoring message of type {msg_type!r}")
            return None

        instrument = message.get("instrument") or message.get("symbol")
        if not instrument:
            if not self._watch_list:
                logger.warning("reqSignalNow without instrument and empty watch list")
                return None
            instrument = self._watch_list[0]
        if not isinstance(instrument, str):
            logger.warning(f"reqSignalNow with non-string instrument: {instrument!r}")
            return None
        market = message.get("market") or self._default_market

        try:
            signal = self._emitter.request_signal(instrument.upper(), str(market))
        except Exception as e:
            logger.error(f"On-demand scoring failed for {instrument}: {e}", exc_info=True)
            return None

        if signal is None:
            logger.info(f"reqSignalNow {instrument.upper()}: insufficient data")
            return None
        return make_message(MessageType.SIGNAL, signal.to_dict())

    @staticmethod
    def _decode(raw: RawMessage) -> Optional[Dict[str, Any]]:
        if isinstance(raw, dict):
            return raw
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            decoded = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Malformed client message: {e}")
            return None
        if not isinstance(decoded, dict):
            logger.warning(f"Client message is not an object: {type(decoded).__name__}")
            return None
        return decoded
