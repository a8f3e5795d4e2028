# backend/forum_pm/core/exceptions.py
from __future__ import annotations

from typing import Optional


class PrivateMessagingError(Exception):
    """Base exception class for all private messaging errors."""
    pass


class NotFound(PrivateMessagingError):
    """Raised when a message id has no record, or the record is not visible to the caller."""

    def __init__(self, message_id: Optional[int] = None, detail: str = "Message not found"):
        self.message_id = message_id
        super().__init__(detail if message_id is None else f"{detail}: {message_id}")


class ValidationError(PrivateMessagingError):
    """
    Raised when form data can't be turned into a sendable message.
    `field` names the form field the error belongs to, so the caller
    can re-render the form with the cause next to it.
    """

    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(f"{field}: {detail}")


class RecipientNotFound(ValidationError):
    """Raised when the recipient can't be resolved to an addressable account at send time."""

    def __init__(self, recipient_ref: Optional[str]):
        self.recipient_ref = recipient_ref
        super().__init__("recipient", "wrong recipient")


class InvalidState(PrivateMessagingError):
    """Raised when a transition is attempted from a state that forbids it."""
    pass


class ConcurrentModification(InvalidState):
    """Raised when a message was changed by another transaction since it was loaded."""
    pass


class StorageFailure(PrivateMessagingError):
    """Raised for errors in the underlying database; not recoverable locally."""
    pass
