"""Domain event subscribers."""

from .base import EventSubscriber, SubscriberStats
from .email_subscriber import EmailEventSubscriber
from .lead_subscriber import LeadEventSubscriber

__all__ = [
    "EventSubscriber",
    "SubscriberStats",
    "EmailEventSubscriber",
    "LeadEventSubscriber",
]
