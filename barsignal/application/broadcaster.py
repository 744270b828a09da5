"""Publish boundary: fan-out of messages to bounded per-subscriber queues."""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from barsignal.utils.logging_setup import get_logger

if TYPE_CHECKING:
    from barsignal.infrastructure.observability import SignalMetrics


logger = get_logger(__name__)

_CLOSED = object()


class Subscription:
    """
    One subscriber's bounded message queue.

    Consume with `await sub.get()` or `async for message in sub`. Iteration
    ends once the subscription is closed and its queue is drained.
    """

    def __init__(self, broadcaster: "SignalBroadcaster", subscriber_id: int, queue_size: int):
        self.id = subscriber_id
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def offer(self, message: Dict[str, Any]) -> bool:
        """Non-blocking enqueue. Returns False if the queue is full."""
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            return False

    async def get(self) -> Optional[Dict[str, Any]]:
        """Next message, or None once the subscription is closed."""
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    def get_nowait(self) -> Optional[Dict[str, Any]]:
        """Next queued message without waiting, or None if there is none."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        return None if item is _CLOSED else item

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broadcaster.unsubscribe(self)
        # Wake a pending get(). A waiter implies an empty queue; a full queue
        # is drained by the consumer and then ends on the closed check.
        if not self._queue.full():
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Dict[str, Any]:
        message = await self.get()
        if message is None:
            raise StopAsyncIteration
        return message


class SignalBroadcaster:
    """
    Fire-and-forget message fan-out.

    publish() never blocks and never raises: a subscriber whose queue is full
    loses that one message (counted as a drop) and every other subscriber is
    unaffected. Closed subscriptions are removed.
    """

    def __init__(
        self,
        queue_size: int = 100,
        metrics: Optional["SignalMetrics"] = None,
    ):
        """
        Initialize the broadcaster.

        Args:
            queue_size: Per-subscriber queue bound
            metrics: Metrics collector for publish/drop counts
        """
        if queue_size <= 0:
            raise ValueError(f"queue_size must be positive, got {queue_size}")
        self._queue_size = queue_size
        self._metrics = metrics
        self._subscribers: List[Subscription] = []
        self._next_id = 1
        self._lock = Lock()

        self._stats = {
            "published": 0,
            "delivered": 0,
            "dropped": 0,
        }

    def subscribe(self, queue_size: Optional[int] = None) -> Subscription:
        with self._lock:
            sub = Subscription(self, self._next_id, queue_size or self._queue_size)
            self._next_id += 1
            self._subscribers.append(sub)
        logger.debug(f"Subscriber {sub.id} attached")
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)
                logger.debug(f"Subscriber {subscription.id} detached")

    def publish(self, message: Dict[str, Any]) -> int:
        """
        Deliver a message to every open subscriber.

        Returns:
            Number of subscribers that received the message
        """
        message_type = str(message.get("type", "unknown"))
        with self._lock:
            self._stats["published"] += 1
            subscribers = list(self._subscribers)

        if self._metrics:
            self._metrics.record_message_published(message_type)

        delivered = 0
        for sub in subscribers:
            if sub.closed:
                self.unsubscribe(sub)
                continue
            if sub.offer(message):
                delivered += 1
            else:
                with self._lock:
                    self._stats["dropped"] += 1
                logger.warning(f"Subscriber {sub.id} queue full, dropping {message_type}")
                if self._metrics:
                    self._metrics.record_message_dropped(message_type, "queue_full")

        with self._lock:
            self._stats["delivered"] += delivered
        return delivered

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            stats = dict(self._stats)
            stats["subscribers"] = len(self._subscribers)
        return stats

    def close_all(self) -> None:
        for sub in list(self._subscribers):
            sub.close()
