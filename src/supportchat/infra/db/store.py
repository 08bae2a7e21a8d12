"""Conversation store: all reads and writes of conversations/messages.

Every public coroutine opens its own session from the injected
``async_sessionmaker``; no session outlives a single call.  Any
``SQLAlchemyError`` is re-raised as ``StorageFault`` so callers never
see driver-specific exceptions.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from supportchat.core.exceptions import ConversationNotFound, StorageFault
from supportchat.core.service.metrics import MESSAGES_PERSISTED_TOTAL
from supportchat.infra.id_utils import generate_id
from supportchat.infra.telemetry import (
    ATTR_CONVERSATION_ID,
    ATTR_MESSAGE_SENDER,
    SPAN_STORE_ADD_MESSAGE,
    tracer,
)

from .models import SENDER_AI, SENDER_USER, SENDERS, Conversation, Message, Sender

logger = logging.getLogger(__name__)

_CLOCK_STEP = timedelta(microseconds=1)


@dataclass(frozen=True)
class ConversationStats:
    """Aggregate counts over the whole store."""

    total_conversations: int
    total_messages: int
    user_messages: int
    ai_messages: int
    average_messages_per_conversation: float


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_timestamp(last: datetime) -> datetime:
    """A timestamp strictly after *last*, normally the current time.

    Keeps timestamp order identical to insertion order even when two
    writes land within the clock's resolution.
    """
    now = _utcnow()
    if now <= last:
        return last + _CLOCK_STEP
    return now


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Storage failure during %s", operation, exc_info=True)
        raise StorageFault(f"Failed to {operation}") from exc


class ConversationStore:
    """Data-access operations for conversations and their messages.

    The session factory must be built with ``expire_on_commit=False``:
    returned rows are detached and read after their session closes.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def create_conversation(self) -> Conversation:
        now = _utcnow()
        conversation = Conversation(id=generate_id(), created_at=now, updated_at=now)
        with _storage_errors("create conversation"):
            async with self._session_factory() as session, session.begin():
                session.add(conversation)
        logger.debug("Created conversation %s", conversation.id)
        return conversation

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Look up a conversation; ``None`` when it does not exist."""
        with _storage_errors("load conversation"):
            async with self._session_factory() as session:
                return await session.get(Conversation, conversation_id)

    async def get_or_create_conversation(
        self, conversation_id: str | None = None
    ) -> Conversation:
        """Resolve *conversation_id*, or create a new conversation.

        An id that does not resolve is ignored rather than rejected; the
        caller gets a fresh conversation with a different id.
        """
        if conversation_id:
            existing = await self.get_conversation(conversation_id)
            if existing is not None:
                return existing
            logger.info(
                "Unknown conversation %s supplied; starting a new one",
                conversation_id,
            )
        return await self.create_conversation()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def add_message(
        self, conversation_id: str, sender: Sender, text: str
    ) -> Message:
        """Append a message and bump the parent's ``updated_at`` atomically.

        Concurrent appends to one conversation are serialised: the parent
        row is locked with ``FOR UPDATE`` on PostgreSQL, and on SQLite,
        which ignores that clause, the engine opens every transaction
        with ``BEGIN IMMEDIATE`` (see ``create_engine``).

        Raises:
            ValueError: unknown *sender* or empty *text*.
            ConversationNotFound: the conversation does not exist.
            StorageFault: the database failed.
        """
        if sender not in SENDERS:
            raise ValueError(f"sender must be one of {SENDERS}, got {sender!r}")
        if not text:
            raise ValueError("message text must not be empty")

        with tracer.start_as_current_span(SPAN_STORE_ADD_MESSAGE) as span:
            span.set_attribute(ATTR_CONVERSATION_ID, conversation_id)
            span.set_attribute(ATTR_MESSAGE_SENDER, sender)
            with _storage_errors("add message"):
                async with self._session_factory() as session, session.begin():
                    conversation = await session.scalar(
                        select(Conversation)
                        .where(Conversation.id == conversation_id)
                        .with_for_update()
                    )
                    if conversation is None:
                        raise ConversationNotFound(conversation_id)

                    timestamp = _next_timestamp(conversation.updated_at)
                    message = Message(
                        id=generate_id(),
                        conversation_id=conversation_id,
                        sender=sender,
                        text=text,
                        timestamp=timestamp,
                    )
                    session.add(message)
                    conversation.updated_at = timestamp

        MESSAGES_PERSISTED_TOTAL.labels(sender=sender).inc()
        return message

    async def get_messages(
        self, conversation_id: str, limit: int | None = None
    ) -> list[Message]:
        """Messages of a conversation, oldest first.

        With *limit*, only the most recent *limit* messages are returned
        (still oldest first).
        """
        stmt = select(Message).where(Message.conversation_id == conversation_id)
        if limit is None:
            stmt = stmt.order_by(Message.timestamp.asc())
        else:
            stmt = stmt.order_by(Message.timestamp.desc()).limit(limit)

        with _storage_errors("load messages"):
            async with self._session_factory() as session:
                messages = list((await session.scalars(stmt)).all())

        if limit is not None:
            messages.reverse()
        return messages

    # ------------------------------------------------------------------
    # Administrative reads
    # ------------------------------------------------------------------

    async def list_conversations(
        self, limit: int | None = None, offset: int | None = None
    ) -> list[Conversation]:
        """Conversations, most recently updated first."""
        stmt = select(Conversation).order_by(Conversation.updated_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        with _storage_errors("list conversations"):
            async with self._session_factory() as session:
                return list((await session.scalars(stmt)).all())

    async def count_conversations(self) -> int:
        with _storage_errors("count conversations"):
            async with self._session_factory() as session:
                count = await session.scalar(
                    select(func.count()).select_from(Conversation)
                )
        return count or 0

    async def list_messages(
        self,
        limit: int | None = None,
        offset: int | None = None,
        conversation_id: str | None = None,
    ) -> list[Message]:
        """Messages across all conversations, newest first."""
        stmt = select(Message)
        if conversation_id is not None:
            stmt = stmt.where(Message.conversation_id == conversation_id)
        stmt = stmt.order_by(Message.timestamp.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        with _storage_errors("list messages"):
            async with self._session_factory() as session:
                return list((await session.scalars(stmt)).all())

    async def get_stats(self) -> ConversationStats:
        with _storage_errors("compute stats"):
            async with self._session_factory() as session:
                total_conversations = await session.scalar(
                    select(func.count()).select_from(Conversation)
                )
                rows = (
                    await session.execute(
                        select(Message.sender, func.count()).group_by(Message.sender)
                    )
                ).all()

        by_sender = {sender: count for sender, count in rows}
        total_conversations = total_conversations or 0
        total_messages = sum(by_sender.values())
        average = (
            round(total_messages / total_conversations, 2)
            if total_conversations
            else 0.0
        )
        return ConversationStats(
            total_conversations=total_conversations,
            total_messages=total_messages,
            user_messages=by_sender.get(SENDER_USER, 0),
            ai_messages=by_sender.get(SENDER_AI, 0),
            average_messages_per_conversation=average,
        )

    async def ping(self) -> None:
        """Round-trip ``SELECT 1``; raises ``StorageFault`` when unreachable."""
        with _storage_errors("ping database"):
            async with self._session_factory() as session:
                await session.execute(sql_text("SELECT 1"))
