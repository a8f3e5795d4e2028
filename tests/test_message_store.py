"""Tests for the message store: get/save and owner/status scoped listing."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from forum_pm.core.exceptions import NotFound, StorageFailure
from forum_pm.crud import messages as store
from forum_pm.crud.messages import Role
from forum_pm.models.message import SENT_STATUSES, Message, MessageStatus


BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


def _message(sender, recipient=None, status=MessageStatus.SENT_UNREAD, minutes=0, **overrides) -> Message:
    values = dict(
        sender_id=sender.id,
        recipient_id=recipient.id if recipient else None,
        recipient_name=recipient.username if recipient else "",
        title=f"t{minutes}",
        body="b",
        status=status,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )
    values.update(overrides)
    return Message(**values)


def test_save_assigns_id_and_get_returns_it(db, alice, bob):
    msg = store.save(db, _message(alice, bob))
    db.commit()

    assert msg.id is not None
    assert msg.version == 1
    assert store.get(db, msg.id) is msg


def test_save_updates_in_place(db, alice, bob):
    msg = store.save(db, _message(alice, bob))
    db.commit()
    first_id = msg.id

    msg.title = "changed"
    store.save(db, msg)
    db.commit()

    db.expunge_all()
    reloaded = store.get(db, first_id)
    assert reloaded.title == "changed"
    assert reloaded.version == 2


def test_get_missing_raises_not_found(db):
    with pytest.raises(NotFound) as exc_info:
        store.get(db, 404)
    assert exc_info.value.message_id == 404


def test_find_orders_most_recent_first(db, alice, bob):
    for minutes in (5, 1, 9):
        store.save(db, _message(alice, bob, minutes=minutes))
    db.commit()

    titles = [m.title for m in store.find_by_owner_and_status(db, bob.id, Role.RECIPIENT, SENT_STATUSES)]
    assert titles == ["t9", "t5", "t1"]


def test_find_breaks_timestamp_ties_by_id(db, alice, bob):
    first = store.save(db, _message(alice, bob, title="first"))
    second = store.save(db, _message(alice, bob, title="second"))
    db.commit()

    ids = [m.id for m in store.find_by_owner_and_status(db, bob.id, Role.RECIPIENT, SENT_STATUSES)]
    assert ids == [second.id, first.id]


def test_find_is_restartable_and_sees_new_rows(db, alice, bob):
    store.save(db, _message(alice, bob, minutes=1))
    db.commit()

    query = store.find_by_owner_and_status(db, bob.id, Role.RECIPIENT, SENT_STATUSES)
    assert len(list(query)) == 1
    assert len(list(query)) == 1

    store.save(db, _message(alice, bob, minutes=2))
    db.commit()
    assert len(list(query)) == 2
    assert query.count() == 2


def test_find_filters_by_role_status_and_deletion_flag(db, alice, bob):
    store.save(db, _message(alice, bob, title="visible"))
    store.save(db, _message(alice, bob, title="hidden", deleted_by_recipient=True))
    store.save(db, _message(alice, None, status=MessageStatus.DRAFT, title="draft"))
    db.commit()

    inbox = [m.title for m in store.find_by_owner_and_status(db, bob.id, Role.RECIPIENT, SENT_STATUSES)]
    outbox = [m.title for m in store.find_by_owner_and_status(db, alice.id, Role.SENDER, SENT_STATUSES)]
    drafts = [
        m.title
        for m in store.find_by_owner_and_status(db, alice.id, Role.SENDER, (MessageStatus.DRAFT,))
    ]

    assert inbox == ["visible"]
    assert sorted(outbox) == ["hidden", "visible"]
    assert drafts == ["draft"]
    assert store.count_by_owner_and_status(db, bob.id, Role.RECIPIENT, SENT_STATUSES) == 1


def test_slice_pages_through_results(db, alice, bob):
    for minutes in range(5):
        store.save(db, _message(alice, bob, minutes=minutes))
    db.commit()

    query = store.find_by_owner_and_status(db, bob.id, Role.RECIPIENT, SENT_STATUSES)
    assert [m.title for m in query.slice(0, 2)] == ["t4", "t3"]
    assert [m.title for m in query.slice(4, 2)] == ["t0"]


def test_database_errors_become_storage_failure(db, monkeypatch):
    def broken_get(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "get", broken_get)

    with pytest.raises(StorageFailure) as exc_info:
        store.get(db, 1)
    assert isinstance(exc_info.value.__cause__, OperationalError)
