"""Base event bus interface."""

from __future__ import annotations

import abc

from ..contracts import DomainEvent
from ..errors import SubscriptionClosed


class Subscription(metaclass=abc.ABCMeta):
    """Receive handle returned by ``EventBus.subscribe``."""

    pattern: str

    @abc.abstractmethod
    async def recv(self) -> DomainEvent:
        """Wait for the next published event.

        Raises:
            SubscriptionClosed: The subscription or its bus was closed.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def close(self) -> None:
        """Stop receiving events."""
        raise NotImplementedError

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> DomainEvent:
        try:
            return await self.recv()
        except SubscriptionClosed:
            raise StopAsyncIteration


class EventBus(metaclass=abc.ABCMeta):
    """Publish/subscribe channel for domain events."""

    @abc.abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """Deliver ``event`` to every live subscription.

        Raises:
            NoSubscribersError: Nobody is subscribed.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def subscribe(self, topic_pattern: str) -> Subscription:
        """Open a subscription.

        The returned handle observes all future events. ``topic_pattern`` is
        recorded on the handle but consumers are responsible for matching
        topics themselves.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Close every subscription (no-op by default)."""
        pass
