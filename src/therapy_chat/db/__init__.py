"""Database module for the therapy chat server."""

from .models import Base, ChatMessage, ChatSession, User
from .session import engine, async_session, get_session, DATABASE_URL
from .store import SessionStore

__all__ = [
    "Base",
    "ChatMessage",
    "ChatSession",
    "User",
    "SessionStore",
    "engine",
    "async_session",
    "get_session",
    "DATABASE_URL",
]
