"""Async SQLAlchemy persistence (engine builder, ORM models, store)."""

from .engine import (
    build_db,
    create_engine,
    create_session_factory,
    create_tables,
    get_conversation_store,
    get_session_factory,
)
from .models import (
    SENDER_AI,
    SENDER_USER,
    SENDERS,
    Base,
    Conversation,
    Message,
    Sender,
)
from .store import ConversationStats, ConversationStore

__all__ = [
    "build_db",
    "create_engine",
    "create_session_factory",
    "create_tables",
    "get_conversation_store",
    "get_session_factory",
    "Base",
    "Conversation",
    "ConversationStats",
    "ConversationStore",
    "Message",
    "Sender",
    "SENDER_AI",
    "SENDER_USER",
    "SENDERS",
]
