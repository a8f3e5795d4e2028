from __future__ import annotations

from typing import Callable, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from forum_pm.crud.users import create_user
from forum_pm.db.init_db import init_db
from forum_pm.models.user import User
from forum_pm.services.messaging import MessagingService


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent = []

    def notify_sent(self, message) -> None:
        self.sent.append(message.id)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def alice(db) -> User:
    return create_user(db, "alice", "alice@example.com")


@pytest.fixture
def bob(db) -> User:
    return create_user(db, "bob", "bob@example.com")


@pytest.fixture
def carol(db) -> User:
    # disabled account, never addressable
    return create_user(db, "carol", "carol@example.com", enabled=False)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service_for(db, notifier) -> Callable[..., MessagingService]:
    def _make(user: User, session: Optional[Session] = None, **kwargs) -> MessagingService:
        kwargs.setdefault("notifier", notifier)
        return MessagingService(session or db, user, **kwargs)

    return _make
