from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from forum_pm.models.message import MessageStatus
from forum_pm.security.sanitizer import InputSanitizer


class MessageForm(BaseModel):
    """
    Raw private message form data as submitted by the user.

    Emptiness of title/body and existence of the recipient are not checked
    here: drafts may be saved half-written, and both are enforced when the
    message is sent.
    """
    model_config = ConfigDict(extra='forbid')

    id: Optional[int] = Field(default=None, ge=1, description='Id of the draft being edited')
    title: str = Field(default='', description='Message title')
    body: str = Field(default='', description='Message body (allows newlines)')
    recipient: str = Field(default='', description='Recipient username or email')

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        return InputSanitizer.sanitize_title(v)

    @field_validator('body')
    @classmethod
    def validate_body(cls, v: str) -> str:
        return InputSanitizer.sanitize_body(v)

    @field_validator('recipient')
    @classmethod
    def validate_recipient(cls, v: str) -> str:
        return InputSanitizer.normalize_recipient(v)


class MessageDraft(BaseModel):
    """Unsaved draft-shaped value used to prefill the message form (reply, quote, edit)."""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    title: str = ''
    body: str = ''
    recipient: str = ''


class MessageListItem(BaseModel):
    """Row of an inbox/outbox/drafts listing."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: int
    recipient_id: Optional[int] = None
    recipient_name: str
    title: str
    status: MessageStatus
    created_at: datetime
