"""
Chat broadcaster: bounded in-memory history and fan-out to connected clients.

The history is a single shared ring of the most recent messages. One lock
guards both the ring and the subscriber set, so a new client's snapshot and
its registration happen atomically with respect to :meth:`ChatBroadcaster.post`:
a client sees every message either in its snapshot or in its live stream,
never in both and never in neither.

Fan-out never waits on a client. Each subscription owns a bounded
``asyncio.Queue``; a client that falls ``client_queue_size`` messages behind
is dropped instead of stalling everyone else.

``post``/``subscribe``/``unsubscribe`` are synchronous and must run on the
event loop thread that consumes the subscriptions.
"""

import asyncio
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from campusfeed.logging import logger


@dataclass(frozen=True)
class ChatMessage:
    text: str
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, str]:
        return {"text": self.text, "time": self.time.isoformat()}


class Subscription:
    """One connected client: its initial snapshot plus a queue of live messages."""

    def __init__(self, snapshot: List[ChatMessage], queue_size: int):
        self.snapshot = snapshot
        self.dropped = False
        self._queue: "asyncio.Queue[Optional[ChatMessage]]" = asyncio.Queue(maxsize=queue_size + 1)
        self._capacity = queue_size

    def _deliver(self, message: ChatMessage) -> bool:
        """Enqueue without blocking. Returns False when the client is too far behind."""
        if self.dropped:
            return False
        if self._queue.qsize() >= self._capacity:
            self._drop()
            return False
        self._queue.put_nowait(message)
        return True

    def _drop(self) -> None:
        self.dropped = True
        while not self._queue.empty():
            self._queue.get_nowait()
        # The extra slot always leaves room for the end-of-stream marker.
        self._queue.put_nowait(None)

    def close(self) -> None:
        if not self.dropped:
            self._drop()

    async def get(self) -> Optional[ChatMessage]:
        """Wait for the next live message; None once the subscription has ended."""
        return await self._queue.get()

    def pending(self) -> List[ChatMessage]:
        """Drain the messages that are already queued, without waiting."""
        drained = []
        while not self._queue.empty():
            message = self._queue.get_nowait()
            if message is not None:
                drained.append(message)
        return drained


class ChatBroadcaster:
    """
    Shared chat room.

    Args:
        capacity: Number of recent messages kept (oldest evicted first).
        client_queue_size: How many undelivered messages a client may hold
            before it is dropped.
    """

    def __init__(self, capacity: int = 50, client_queue_size: int = 100):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.client_queue_size = client_queue_size
        self._history: "deque[ChatMessage]" = deque(maxlen=capacity)
        self._subscribers: List[Subscription] = []
        self._lock = threading.Lock()

    def history(self) -> List[ChatMessage]:
        with self._lock:
            return list(self._history)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Snapshot the history and register for live messages in one step."""
        with self._lock:
            subscription = Subscription(list(self._history), self.client_queue_size)
            self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivering to ``subscription``. Idempotent."""
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)
        subscription.close()

    def post(self, text: str) -> ChatMessage:
        """Append a message and deliver it to every subscriber, in arrival order."""
        message = ChatMessage(text=text)
        with self._lock:
            self._history.append(message)
            lagging = [s for s in self._subscribers if not s._deliver(message)]
            for subscription in lagging:
                self._subscribers.remove(subscription)
        if lagging:
            logger.warning("Dropped {} chat client(s) that fell behind", len(lagging))
        return message
