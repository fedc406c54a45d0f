"""Event bus factory and initialization."""

from __future__ import annotations

from typing import Optional

from ..config import OxiCrmConfig, load_config
from .base import EventBus, Subscription
from .inmemory import InMemoryEventBus, InMemorySubscription


def get_event_bus(config: Optional[OxiCrmConfig] = None) -> EventBus:
    """Factory function to get the configured event bus."""

    config = config or load_config()
    return InMemoryEventBus(capacity=config.event_bus.capacity)


__all__ = [
    "EventBus",
    "Subscription",
    "InMemoryEventBus",
    "InMemorySubscription",
    "get_event_bus",
]
