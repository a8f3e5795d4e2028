# backend/forum_pm/crud/users.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from forum_pm.models.user import User


def get_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == email.lower())
    return db.execute(stmt).scalar_one_or_none()


def get_by_username(db: Session, username: str) -> User | None:
    stmt = select(User).where(func.lower(User.username) == username.lower())
    return db.execute(stmt).scalar_one_or_none()


def resolve_recipient(db: Session, ref: Optional[str]) -> User | None:
    """
    Resolve a recipient reference to an addressable account.
    The reference may be a username or an email; disabled accounts don't resolve.
    """
    token = (ref or "").strip()
    if not token:
        return None

    user = get_by_username(db, token)
    if user is None and "@" in token:
        user = get_by_email(db, token)

    if user is None or not user.enabled:
        return None
    return user


def create_user(db: Session, username: str, email: str, enabled: bool = True) -> User:
    u = User(username=username, email=email, enabled=enabled)

    db.add(u)
    db.commit()
    db.refresh(u)
    return u
