# backend/forum_pm/services/state_machine.py
"""
Lifecycle of a private message.

    DRAFT --send--> SENT_UNREAD --mark_read--> SENT_READ
    DRAFT --save--> DRAFT

SENT_READ is terminal. Folders are not states of their own: a message shows
up in a folder depending on its status, the viewer's role and that role's
deletion flag.
"""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Dict, Optional, Set, Tuple

from forum_pm.core.exceptions import InvalidState, RecipientNotFound, ValidationError
from forum_pm.crud.messages import Role
from forum_pm.models.message import SENT_STATUSES, Message, MessageStatus
from forum_pm.models.user import User


class Folder(str, enum.Enum):
    INBOX = "inbox"
    OUTBOX = "outbox"
    DRAFTS = "drafts"


FOLDER_QUERIES: Dict[Folder, Tuple[Role, Tuple[MessageStatus, ...]]] = {
    Folder.INBOX: (Role.RECIPIENT, SENT_STATUSES),
    Folder.OUTBOX: (Role.SENDER, SENT_STATUSES),
    Folder.DRAFTS: (Role.SENDER, (MessageStatus.DRAFT,)),
}

TRANSITIONS: Dict[Tuple[MessageStatus, str], MessageStatus] = {
    (MessageStatus.DRAFT, "save"): MessageStatus.DRAFT,
    (MessageStatus.DRAFT, "send"): MessageStatus.SENT_UNREAD,
    (MessageStatus.SENT_UNREAD, "mark_read"): MessageStatus.SENT_READ,
}


def can(message: Message, action: str) -> bool:
    return (message.status, action) in TRANSITIONS


def new_draft(sender: User) -> Message:
    return Message(
        sender_id=sender.id,
        status=MessageStatus.DRAFT,
        title="",
        body="",
        recipient_name="",
        deleted_by_sender=False,
        deleted_by_recipient=False,
    )


def save(message: Message, title: str, body: str, recipient_ref: Optional[str]) -> Message:
    """
    Apply edited fields to a draft. The title is trimmed, the body loses
    surrounding blank lines and trailing whitespace. The recipient is kept
    as typed, unresolved.
    """
    if not can(message, "save"):
        raise InvalidState(f"Message {message.id} is not a draft")

    message.title = (title or "").strip()
    message.body = (body or "").rstrip().lstrip("\r\n")
    message.recipient_name = (recipient_ref or "").strip()
    return message


def send(
    message: Message,
    recipient: Optional[User],
    recipient_ref: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Message:
    """
    Deliver a draft: DRAFT -> SENT_UNREAD.

    Raises InvalidState if the message isn't a draft, ValidationError for a
    blank title or body and RecipientNotFound when `recipient` is None.
    """
    if not can(message, "send"):
        raise InvalidState(f"Message {message.id} has already been sent")

    if not (message.title or "").strip():
        raise ValidationError("title", "title must not be empty")
    if not (message.body or "").strip():
        raise ValidationError("body", "body must not be empty")
    if recipient is None:
        raise RecipientNotFound(recipient_ref if recipient_ref is not None else message.recipient_name)

    message.recipient_id = recipient.id
    message.recipient = recipient
    message.recipient_name = recipient.username
    message.created_at = now or datetime.utcnow()
    message.status = TRANSITIONS[(MessageStatus.DRAFT, "send")]
    return message


def mark_read(message: Message, actor_id: int) -> bool:
    """
    SENT_UNREAD -> SENT_READ when `actor_id` is the recipient.
    Anything else (sender reading, draft, already read) is a no-op; returns
    whether the status changed.
    """
    if message.recipient_id is None or message.recipient_id != actor_id:
        return False
    if not can(message, "mark_read"):
        return False

    message.status = TRANSITIONS[(MessageStatus.SENT_UNREAD, "mark_read")]
    return True


def folders_of(message: Message, owner_id: int) -> Set[Folder]:
    folders = set()
    if message.sender_id == owner_id and not message.deleted_by_sender:
        if message.status == MessageStatus.DRAFT:
            folders.add(Folder.DRAFTS)
        elif message.status in SENT_STATUSES:
            folders.add(Folder.OUTBOX)
    if (
        message.recipient_id == owner_id
        and not message.deleted_by_recipient
        and message.status in SENT_STATUSES
    ):
        folders.add(Folder.INBOX)
    return folders
