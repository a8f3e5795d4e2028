# backend/forum_pm/services/notifications.py
from __future__ import annotations

from typing import Protocol

from forum_pm.core.logging import setup_logger
from forum_pm.models.message import Message

logger = setup_logger(__name__)


class NotificationDispatcher(Protocol):
    """Tells a recipient that a message was delivered to them."""

    def notify_sent(self, message: Message) -> None:
        ...


class LoggingNotificationDispatcher:
    """Default dispatcher: only records the delivery in the log."""

    def notify_sent(self, message: Message) -> None:
        logger.info(
            f"Private message {message.id} delivered to user {message.recipient_id} "
            f"({message.recipient_name}) from user {message.sender_id}"
        )
