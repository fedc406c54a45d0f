"""Receive loop shared by the domain event subscribers."""

from __future__ import annotations

import abc
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional
from uuid import UUID

from pydantic import BaseModel

from ..clock import Clock, SystemClock
from ..contracts import DomainEvent
from ..errors import ValidationError
from ..messaging import EventBus, Subscription

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], Awaitable[None]]


class SubscriberStats(BaseModel):
    processed: int = 0
    failed: int = 0
    ignored: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None


def require_uuid(data: dict, field: str, label: str) -> UUID:
    try:
        return UUID(str(data[field]))
    except (KeyError, ValueError, TypeError):
        raise ValidationError(f"Missing or invalid {label} ID") from None


def require_str(data: dict, field: str, label: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value:
        raise ValidationError(f"Missing {label}")
    return value


def optional_str(data: dict, field: str, default: str) -> str:
    value = data.get(field)
    return value if isinstance(value, str) and value else default


class EventSubscriber(metaclass=abc.ABCMeta):
    """Listens to the bus and dispatches events by literal topic name.

    The bus delivers every event to every subscription, so topics without
    a handler are counted as ignored. A failing handler is logged and the
    loop moves on to the next event.
    """

    topic_pattern = "*"

    def __init__(self, event_bus: EventBus, clock: Clock | None = None) -> None:
        self._event_bus = event_bus
        self._clock = clock or SystemClock()
        self._subscription: Optional[Subscription] = None
        self._task: Optional[asyncio.Task] = None
        self.stats = SubscriberStats()

    @property
    def name(self) -> str:
        return type(self).__name__

    @abc.abstractmethod
    def handlers(self) -> Dict[str, Handler]:
        """Map of topic name to handler coroutine."""
        raise NotImplementedError

    async def start(self) -> asyncio.Task:
        """Subscribe and spawn the receive loop as a task.

        Calling it again while running returns the existing task.
        """
        if self._task is not None:
            return self._task
        self._subscription = await self._event_bus.subscribe(self.topic_pattern)
        self._task = asyncio.create_task(self.run(self._subscription), name=self.name)
        return self._task

    async def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
        if self._task is not None:
            await self._task
            self._task = None

    async def run(self, subscription: Subscription) -> None:
        logger.info(f"{self.name} started")
        async for event in subscription:
            logger.debug(f"{self.name} received event: {event.topic}")
            await self.handle(event)
        logger.warning(f"{self.name} receiver closed")

    async def handle(self, event: DomainEvent) -> None:
        """Process one event; errors are recorded, never raised."""
        handler = self.handlers().get(event.topic)
        if handler is None:
            self.stats.ignored += 1
            return
        try:
            await handler(event)
        except Exception as e:
            self.stats.failed += 1
            self.stats.last_error = f"{event.topic}: {e}"
            self.stats.last_error_at = self._clock.now()
            logger.error(f"Error handling event {event.topic}: {e}")
            return
        self.stats.processed += 1
