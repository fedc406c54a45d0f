"""Error taxonomy shared by the automation pipeline."""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all domain level failures."""


class ValidationError(DomainError):
    """Malformed input such as an invalid address or an empty subject."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Validation failed: {message}")
        self.detail = message


class NotFoundError(DomainError):
    """A referenced entity (template, email, run) does not exist."""

    def __init__(self, entity: str = "Entity", entity_id: object | None = None) -> None:
        message = f"{entity} not found"
        if entity_id is not None:
            message = f"{message}: {entity_id}"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class PermissionDeniedError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Permission denied: {message}")


class InvalidStateError(DomainError):
    """Illegal state transition or uniqueness conflict."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid state transition: {message}")


class InfrastructureError(DomainError):
    """Persistence, queue or transport failure."""


class EmailDeliveryError(InfrastructureError):
    """Raised by email providers when a message could not be handed off."""


class JobQueueFullError(InfrastructureError):
    pass


class NoSubscribersError(InfrastructureError):
    """Publishing to an event bus that has no live subscription."""


class SubscriptionClosed(InfrastructureError):
    """The channel was closed while a consumer was waiting on it."""
