# backend/forum_pm/crud/messages.py
from __future__ import annotations

import enum
from typing import Iterator, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from forum_pm.core.exceptions import ConcurrentModification, NotFound, StorageFailure
from forum_pm.core.logging import setup_logger
from forum_pm.models.message import Message, MessageStatus

logger = setup_logger(__name__)


class Role(str, enum.Enum):
    SENDER = "sender"
    RECIPIENT = "recipient"


def _owner_filter(owner_id: int, role: Role, statuses: Sequence[MessageStatus]):
    if role is Role.SENDER:
        return (
            Message.sender_id == owner_id,
            Message.deleted_by_sender == False,
            Message.status.in_(statuses),
        )
    return (
        Message.recipient_id == owner_id,
        Message.deleted_by_recipient == False,
        Message.status.in_(statuses),
    )


class MessageQuery:
    """
    Lazy, restartable sequence of messages for one owner/role/status filter.
    Every iteration runs the query again; nothing is cached between runs.
    """

    def __init__(self, db: Session, owner_id: int, role: Role, statuses: Sequence[MessageStatus]):
        self._db = db
        self.owner_id = owner_id
        self.role = role
        self.statuses = tuple(statuses)

    def _select(self):
        return (
            select(Message)
            .where(*_owner_filter(self.owner_id, self.role, self.statuses))
            .order_by(Message.created_at.desc(), Message.id.desc())
        )

    def __iter__(self) -> Iterator[Message]:
        try:
            result = self._db.execute(self._select())
            yield from result.scalars()
        except SQLAlchemyError as e:
            logger.error(f"Listing messages for owner {self.owner_id} failed: {e}", exc_info=True)
            raise StorageFailure(f"Failed to list messages: {e}") from e

    def slice(self, offset: int, limit: int) -> list[Message]:
        try:
            return list(self._db.execute(self._select().offset(offset).limit(limit)).scalars())
        except SQLAlchemyError as e:
            logger.error(f"Listing messages for owner {self.owner_id} failed: {e}", exc_info=True)
            raise StorageFailure(f"Failed to list messages: {e}") from e

    def count(self) -> int:
        return count_by_owner_and_status(self._db, self.owner_id, self.role, self.statuses)


def get(db: Session, message_id: int) -> Message:
    try:
        msg = db.get(Message, message_id)
    except SQLAlchemyError as e:
        logger.error(f"Loading message {message_id} failed: {e}", exc_info=True)
        raise StorageFailure(f"Failed to load message {message_id}: {e}") from e

    if msg is None:
        raise NotFound(message_id)
    return msg


def save(db: Session, message: Message) -> Message:
    """
    Insert or update a message and flush it; the id is assigned on first insert.
    Committing is up to the caller's transaction.
    """
    try:
        db.add(message)
        db.flush()
    except StaleDataError as e:
        raise ConcurrentModification(f"Message {message.id} was modified concurrently") from e
    except SQLAlchemyError as e:
        logger.error(f"Saving message {message.id} failed: {e}", exc_info=True)
        raise StorageFailure(f"Failed to save message: {e}") from e
    return message


def find_by_owner_and_status(
    db: Session,
    owner_id: int,
    role: Role,
    statuses: Sequence[MessageStatus],
) -> MessageQuery:
    return MessageQuery(db, owner_id, role, statuses)


def count_by_owner_and_status(
    db: Session,
    owner_id: int,
    role: Role,
    statuses: Sequence[MessageStatus],
) -> int:
    stmt = select(func.count(Message.id)).where(*_owner_filter(owner_id, role, statuses))
    try:
        return db.execute(stmt).scalar_one()
    except SQLAlchemyError as e:
        logger.error(f"Counting messages for owner {owner_id} failed: {e}", exc_info=True)
        raise StorageFailure(f"Failed to count messages: {e}") from e
