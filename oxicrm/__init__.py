"""oxicrm: event-driven email and workflow automation for the CRM."""

from .contracts import DomainEvent, Job
from .email import ReceiveEmail, SendEmail, get_email_provider, render
from .events import EmailEventSubscriber, LeadEventSubscriber
from .jobs import EmailJobWorker, InMemoryJobQueue, PeriodicJobScheduler
from .messaging import InMemoryEventBus, get_event_bus
from .persistence import Repositories, get_repositories
from .runtime import AutomationRuntime
from .workflow import WorkflowExecutor

__version__ = "0.1.0"
__all__ = [
    "DomainEvent",
    "Job",
    "SendEmail",
    "ReceiveEmail",
    "render",
    "get_email_provider",
    "EmailEventSubscriber",
    "LeadEventSubscriber",
    "EmailJobWorker",
    "InMemoryJobQueue",
    "PeriodicJobScheduler",
    "InMemoryEventBus",
    "get_event_bus",
    "Repositories",
    "get_repositories",
    "AutomationRuntime",
    "WorkflowExecutor",
]
