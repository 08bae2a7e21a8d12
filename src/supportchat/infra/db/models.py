"""SQLAlchemy ORM models for the SupportChat application.

Tables are created from ``Base.metadata`` at start-up (see
``build_db``).  The ``Base.metadata`` naming convention keeps
constraint names deterministic across SQLite and PostgreSQL.
"""

from datetime import datetime, timezone
from typing import Literal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# ---------------------------------------------------------------------------
# Declarative base with naming convention
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    """Shared declarative base with explicit naming convention."""

    metadata_naming_convention = {
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }


Base.metadata.naming_convention = Base.metadata_naming_convention


# ---------------------------------------------------------------------------
# Sender constants & type
# ---------------------------------------------------------------------------

SENDER_USER: Literal["user"] = "user"
SENDER_AI: Literal["ai"] = "ai"

Sender = Literal["user", "ai"]
SENDERS = (SENDER_USER, SENDER_AI)

ID_LENGTH = 36


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetime on every dialect.

    SQLite stores ``DateTime`` values without an offset; results are
    re-tagged as UTC so comparisons with ``datetime.now(timezone.utc)``
    never mix naive and aware values.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# ---------------------------------------------------------------------------
# Conversations table
# ---------------------------------------------------------------------------


class Conversation(Base):
    """A persisted support thread.

    ``updated_at`` moves forward with every appended message and is
    always >= the timestamp of the newest message.
    """

    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (Index("ix_conversations_updated_at", "updated_at"),)

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id!r}, updated_at={self.updated_at!r})>"


# ---------------------------------------------------------------------------
# Messages table
# ---------------------------------------------------------------------------


class Message(Base):
    """A single user or AI turn.

    Rows are deleted together with their conversation
    (``ON DELETE CASCADE``).  Within a conversation, ``timestamp`` order
    and insertion order agree.
    """

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True)
    conversation_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender: Mapped[str] = mapped_column(String(8), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("sender IN ('user', 'ai')", name="sender"),
        Index(
            "ix_messages_conversation_id_timestamp",
            "conversation_id",
            "timestamp",
        ),
        Index("ix_messages_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<Message(id={self.id!r}, conversation_id={self.conversation_id!r}, "
            f"sender={self.sender!r})>"
        )
