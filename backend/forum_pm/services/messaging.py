# backend/forum_pm/services/messaging.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from forum_pm.core.config import settings
from forum_pm.core.exceptions import (
    ConcurrentModification,
    InvalidState,
    NotFound,
    PrivateMessagingError,
    StorageFailure,
)
from forum_pm.core.logging import setup_logger
from forum_pm.crud import messages as store
from forum_pm.crud.users import resolve_recipient
from forum_pm.models.message import Message, MessageStatus
from forum_pm.models.user import User
from forum_pm.schemas.message import MessageDraft, MessageForm, MessageListItem
from forum_pm.services import derive, state_machine
from forum_pm.services.notifications import LoggingNotificationDispatcher, NotificationDispatcher
from forum_pm.services.state_machine import FOLDER_QUERIES, Folder

logger = setup_logger(__name__)

RecipientResolver = Callable[[Session, Optional[str]], Optional[User]]


class FolderView:
    """
    Read-only view of one folder (inbox, outbox or drafts) of one owner,
    most recent first. Iterating runs the query again each time.
    """

    def __init__(self, folder: Folder, query: store.MessageQuery, page_size: Optional[int] = None):
        self.folder = folder
        self._query = query
        self.page_size = page_size or settings.folder_page_size

    @property
    def owner_id(self) -> int:
        return self._query.owner_id

    def __iter__(self) -> Iterator[Message]:
        return iter(self._query)

    def count(self) -> int:
        return self._query.count()

    def page(self, number: int, size: Optional[int] = None) -> List[Message]:
        """1-based page of the folder."""
        if number < 1:
            raise ValueError("Page number must be >= 1")
        size = size or self.page_size
        return self._query.slice((number - 1) * size, size)

    def items(self) -> List[MessageListItem]:
        return [MessageListItem.model_validate(m) for m in self]


class MessagingService:
    """
    Private messaging operations on behalf of one user (the requester).

    Instances are request-scoped: they hold the request's session and the
    current user and keep no other state. Every mutating call runs in its own
    transaction and is committed or rolled back before it returns.
    """

    def __init__(
        self,
        db: Session,
        current_user: User,
        resolver: RecipientResolver = resolve_recipient,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.db = db
        self.current_user = current_user
        self.resolver = resolver
        self.notifier = notifier if notifier is not None else LoggingNotificationDispatcher()

    @contextmanager
    def _transaction(self, action: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except PrivateMessagingError as e:
            self.db.rollback()
            if isinstance(e, StorageFailure):
                logger.error(f"{action} failed: {e}")
            else:
                logger.warning(f"{action} rejected: {e}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action} failed: {e}", exc_info=True)
            raise StorageFailure(f"{action} failed: {e}") from e
        except Exception:
            self.db.rollback()
            raise

    # --- loading ---------------------------------------------------------

    def get(self, message_id: int) -> Message:
        """Message visible to the requester in one of their folders, else NotFound."""
        msg = store.get(self.db, message_id)
        if not state_machine.folders_of(msg, self.current_user.id):
            raise NotFound(message_id)
        return msg

    def _get_own_draft(self, message_id: int) -> Message:
        msg = store.get(self.db, message_id)
        if msg.sender_id != self.current_user.id or msg.deleted_by_sender:
            raise NotFound(message_id)
        if not msg.is_draft:
            raise InvalidState(f"Message {message_id} is not a draft")
        return msg

    # --- sending ---------------------------------------------------------

    def _deliver(self, msg: Message, recipient_ref: Optional[str]) -> None:
        recipient = self.resolver(self.db, recipient_ref)
        state_machine.send(msg, recipient, recipient_ref)
        store.save(self.db, msg)

    def _notify(self, msg: Message) -> None:
        try:
            self.notifier.notify_sent(msg)
        except Exception as e:
            # delivery is already committed; a failed notification doesn't undo it
            logger.warning(f"Notification for message {msg.id} failed: {e}", exc_info=True)

    def send_message(self, title: str, body: str, recipient_ref: Optional[str]) -> Message:
        msg = state_machine.new_draft(self.current_user)
        with self._transaction("Sending new message"):
            state_machine.save(msg, title, body, recipient_ref)
            self._deliver(msg, recipient_ref)

        logger.info(f"User {self.current_user.id} sent message {msg.id} to user {msg.recipient_id}")
        self._notify(msg)
        return msg

    def send_draft(self, message_id: int, title: str, body: str, recipient_ref: Optional[str]) -> Message:
        with self._transaction(f"Sending draft {message_id}"):
            msg = self._get_own_draft(message_id)
            state_machine.save(msg, title, body, recipient_ref)
            self._deliver(msg, recipient_ref)

        logger.info(f"User {self.current_user.id} sent draft {msg.id} to user {msg.recipient_id}")
        self._notify(msg)
        return msg

    def send(self, form: MessageForm) -> Message:
        if form.id:
            return self.send_draft(form.id, form.title, form.body, form.recipient)
        return self.send_message(form.title, form.body, form.recipient)

    # --- drafts ----------------------------------------------------------

    def save_draft(
        self,
        message_id: Optional[int],
        title: str,
        body: str,
        recipient_ref: Optional[str],
    ) -> Message:
        """Create or update a draft. The recipient isn't checked until the draft is sent."""
        with self._transaction(f"Saving draft {message_id or '(new)'}"):
            if message_id:
                msg = self._get_own_draft(message_id)
            else:
                msg = state_machine.new_draft(self.current_user)
            state_machine.save(msg, title, body, recipient_ref)
            store.save(self.db, msg)

        logger.debug(f"User {self.current_user.id} saved draft {msg.id}")
        return msg

    def save(self, form: MessageForm) -> Message:
        return self.save_draft(form.id, form.title, form.body, form.recipient)

    def edit(self, message_id: int) -> MessageDraft:
        msg = self.get(message_id)
        if not msg.is_draft:
            raise InvalidState(f"Message {message_id} is not a draft")
        return derive.derive_edit(msg)

    # --- reading ---------------------------------------------------------

    def mark_as_read(self, message: Message) -> bool:
        """
        Mark `message` read if the requester is its recipient.
        Anything else is silently ignored; returns whether the status changed.
        """
        if message.recipient_id != self.current_user.id:
            return False

        try:
            with self._transaction(f"Marking message {message.id} as read"):
                changed = state_machine.mark_read(message, self.current_user.id)
                if changed:
                    store.save(self.db, message)
        except ConcurrentModification:
            # someone else got there first
            return False
        return changed

    def show(self, folder: Union[Folder, str], message_id: int) -> Message:
        try:
            folder = Folder(folder)
        except ValueError:
            raise NotFound(message_id, f"No folder {folder!r} holds message") from None

        msg = self.get(message_id)
        if folder is Folder.INBOX:
            self.mark_as_read(msg)
        return msg

    def delete(self, message_id: int) -> Message:
        """Hide a message from the requester's folders; the other party still sees it."""
        with self._transaction(f"Deleting message {message_id}"):
            msg = self.get(message_id)
            if msg.sender_id == self.current_user.id:
                msg.deleted_by_sender = True
            if msg.recipient_id == self.current_user.id and msg.is_sent:
                msg.deleted_by_recipient = True
            store.save(self.db, msg)
        return msg

    # --- folders ---------------------------------------------------------

    def _folder(self, folder: Folder, owner_id: int) -> FolderView:
        role, statuses = FOLDER_QUERIES[folder]
        return FolderView(folder, store.find_by_owner_and_status(self.db, owner_id, role, statuses))

    def get_inbox_for_owner(self, owner_id: int) -> FolderView:
        return self._folder(Folder.INBOX, owner_id)

    def get_outbox_for_owner(self, owner_id: int) -> FolderView:
        return self._folder(Folder.OUTBOX, owner_id)

    def get_drafts_for_owner(self, owner_id: int) -> FolderView:
        return self._folder(Folder.DRAFTS, owner_id)

    def count_unread_for_owner(self, owner_id: int) -> int:
        role, _ = FOLDER_QUERIES[Folder.INBOX]
        return store.count_by_owner_and_status(self.db, owner_id, role, (MessageStatus.SENT_UNREAD,))

    # --- reply / quote ---------------------------------------------------

    def reply_to(self, message_id: int) -> MessageDraft:
        return derive.derive_reply(self.get(message_id))

    def quote_of(self, message_id: int) -> MessageDraft:
        return derive.derive_quote(self.get(message_id))
