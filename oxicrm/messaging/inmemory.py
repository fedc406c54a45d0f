"""In-process broadcast event bus."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Deque, List

from ..contracts import DomainEvent
from ..errors import NoSubscribersError, SubscriptionClosed
from .base import EventBus, Subscription

logger = logging.getLogger(__name__)


class InMemorySubscription(Subscription):
    """Bounded per-subscriber buffer.

    When the buffer is full the oldest event is dropped and counted in
    ``missed``; publishers never wait on a slow consumer.
    """

    def __init__(self, bus: "InMemoryEventBus", pattern: str, capacity: int) -> None:
        self.pattern = pattern
        self.missed = 0
        self._bus = bus
        self._buffer: Deque[DomainEvent] = deque()
        self._capacity = capacity
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _push(self, event: DomainEvent) -> None:
        if len(self._buffer) >= self._capacity:
            self._buffer.popleft()
            self.missed += 1
            logger.warning(
                f"Subscription '{self.pattern}' lagged; dropped oldest event ({self.missed} missed)"
            )
        self._buffer.append(event)
        self._ready.set()

    async def recv(self) -> DomainEvent:
        while not self._buffer:
            if self._closed:
                raise SubscriptionClosed(f"Subscription '{self.pattern}' is closed")
            self._ready.clear()
            await self._ready.wait()
        return self._buffer.popleft()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        self._ready.set()
        self._bus._remove(self)


class InMemoryEventBus(EventBus):
    """Fans every published event out to every live subscription."""

    def __init__(self, capacity: int = 100) -> None:
        self.capacity = capacity
        self._subscriptions: List[InMemorySubscription] = []
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, event: DomainEvent) -> None:
        async with self._lock:
            if not self._subscriptions:
                raise NoSubscribersError(
                    f"No subscribers for event '{event.topic}'"
                )
            for subscription in self._subscriptions:
                subscription._push(event)
        logger.debug(
            f"Published '{event.topic}' to {len(self._subscriptions)} subscriber(s)"
        )

    async def subscribe(self, topic_pattern: str) -> InMemorySubscription:
        subscription = InMemorySubscription(self, topic_pattern, self.capacity)
        async with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    async def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.close()

    def _remove(self, subscription: InMemorySubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
