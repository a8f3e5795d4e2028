# backend/forum_pm/models/__init__.py
from .user import User
from .message import Message, MessageStatus

__all__ = ["User", "Message", "MessageStatus"]
