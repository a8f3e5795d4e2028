# backend/forum_pm/models/message.py
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forum_pm.db.base import Base


class MessageStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT_UNREAD = "SENT_UNREAD"
    SENT_READ = "SENT_READ"


SENT_STATUSES = (MessageStatus.SENT_UNREAD, MessageStatus.SENT_READ)


class Message(Base):
    __tablename__ = "private_messages"

    id: Mapped[int] = mapped_column(primary_key=True)

    sender_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    # Drafts may be addressed to a name that doesn't resolve yet, so the id is
    # only filled in at send time; recipient_name keeps what the user typed and
    # becomes the resolved username once sent.
    recipient_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=True
    )
    recipient_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)

    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    body: Mapped[str] = mapped_column(Text, default="", nullable=False)

    status: Mapped[MessageStatus] = mapped_column(
        Enum(MessageStatus, name="message_status"),
        default=MessageStatus.DRAFT,
        index=True,
        nullable=False,
    )

    deleted_by_sender: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_by_recipient: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_draft(self) -> bool:
        return self.status == MessageStatus.DRAFT

    @property
    def is_sent(self) -> bool:
        return self.status in SENT_STATUSES

    def __repr__(self) -> str:
        return f"<Message id={self.id} status={self.status.value} title={self.title!r}>"
