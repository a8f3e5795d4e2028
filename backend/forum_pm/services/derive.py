# backend/forum_pm/services/derive.py
"""Prefill values for the message form, derived from an existing message. No persistence."""
from __future__ import annotations

from typing import Union

from forum_pm.core.config import settings
from forum_pm.models.message import Message
from forum_pm.schemas.message import MessageDraft


def reply_title(title: str) -> str:
    prefix = settings.reply_prefix
    title = title or ""
    if title.startswith(prefix):
        return title
    return prefix + title


def quote_body(body: str) -> str:
    prefix = settings.quote_prefix
    lines = (body or "").split("\n")
    quoted = "\n".join(prefix + line for line in lines)
    # blank line left for the reply text
    return quoted + "\n\n"


def _reply_recipient(original: Union[Message, MessageDraft]) -> str:
    # an unsaved draft keeps its addressee; a stored message is answered to its sender
    if isinstance(original, MessageDraft):
        return original.recipient
    if original.sender is not None:
        return original.sender.username
    return ""


def derive_reply(original: Union[Message, MessageDraft]) -> MessageDraft:
    return MessageDraft(
        title=reply_title(original.title),
        body="",
        recipient=_reply_recipient(original),
    )


def derive_quote(original: Union[Message, MessageDraft]) -> MessageDraft:
    return MessageDraft(
        title=reply_title(original.title),
        body=quote_body(original.body),
        recipient=_reply_recipient(original),
    )


def derive_edit(message: Message) -> MessageDraft:
    return MessageDraft(
        id=message.id,
        title=message.title,
        body=message.body,
        recipient=message.recipient_name,
    )
