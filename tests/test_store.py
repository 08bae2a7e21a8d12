"""ConversationStore against a temporary SQLite database."""

import asyncio

import pytest
from sqlalchemy import delete, func, select

from supportchat.configs.system import ThirdPartyConfig
from supportchat.core.exceptions import ConversationNotFound, StorageFault
from supportchat.infra.db import (
    SENDER_AI,
    SENDER_USER,
    Conversation,
    ConversationStore,
    Message,
    create_engine,
    create_session_factory,
)
from supportchat.infra.id_utils import generate_id, is_valid_id


# =========================================================================
# Conversations
# =========================================================================


class TestConversations:
    @pytest.mark.asyncio
    async def test_create_conversation(self, store):
        conversation = await store.create_conversation()

        assert is_valid_id(conversation.id)
        assert conversation.created_at == conversation.updated_at

    @pytest.mark.asyncio
    async def test_get_conversation_roundtrip(self, store):
        created = await store.create_conversation()

        loaded = await store.get_conversation(created.id)

        assert loaded is not None
        assert loaded.id == created.id
        assert loaded.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_get_unknown_conversation_returns_none(self, store):
        assert await store.get_conversation(generate_id()) is None

    @pytest.mark.asyncio
    async def test_get_or_create_reuses_existing(self, store):
        created = await store.create_conversation()

        resolved = await store.get_or_create_conversation(created.id)

        assert resolved.id == created.id
        assert await store.count_conversations() == 1

    @pytest.mark.asyncio
    async def test_get_or_create_unknown_id_starts_new(self, store):
        unknown = generate_id()

        resolved = await store.get_or_create_conversation(unknown)

        assert resolved.id != unknown
        assert await store.get_conversation(unknown) is None

    @pytest.mark.asyncio
    async def test_get_or_create_without_id(self, store):
        first = await store.get_or_create_conversation()
        second = await store.get_or_create_conversation(None)

        assert first.id != second.id


# =========================================================================
# Messages
# =========================================================================


class TestAddMessage:
    @pytest.mark.asyncio
    async def test_add_message_bumps_updated_at(self, store):
        conversation = await store.create_conversation()

        message = await store.add_message(conversation.id, SENDER_USER, "hello")
        reloaded = await store.get_conversation(conversation.id)

        assert message.conversation_id == conversation.id
        assert message.sender == SENDER_USER
        assert message.text == "hello"
        assert reloaded.updated_at == message.timestamp
        assert reloaded.updated_at > conversation.created_at

    @pytest.mark.asyncio
    async def test_text_stored_verbatim(self, store):
        conversation = await store.create_conversation()
        text = "  Where is my order #42?\n  "

        await store.add_message(conversation.id, SENDER_USER, text)
        [stored] = await store.get_messages(conversation.id)

        assert stored.text == text

    @pytest.mark.asyncio
    async def test_rapid_writes_keep_insertion_order(self, store):
        conversation = await store.create_conversation()
        texts = [f"message {i}" for i in range(20)]

        for i, text in enumerate(texts):
            sender = SENDER_USER if i % 2 == 0 else SENDER_AI
            await store.add_message(conversation.id, sender, text)
        messages = await store.get_messages(conversation.id)

        assert [m.text for m in messages] == texts
        timestamps = [m.timestamp for m in messages]
        assert all(a < b for a, b in zip(timestamps, timestamps[1:]))

    @pytest.mark.asyncio
    async def test_concurrent_appends_are_serialised(self, store):
        conversation = await store.create_conversation()

        await asyncio.gather(
            *(
                store.add_message(conversation.id, SENDER_USER, f"message {i}")
                for i in range(10)
            )
        )
        messages = await store.get_messages(conversation.id)
        reloaded = await store.get_conversation(conversation.id)

        assert len(messages) == 10
        timestamps = [m.timestamp for m in messages]
        assert all(a < b for a, b in zip(timestamps, timestamps[1:]))
        assert reloaded.updated_at == max(timestamps)

    @pytest.mark.asyncio
    async def test_unknown_conversation_raises(self, store):
        with pytest.raises(ConversationNotFound):
            await store.add_message(generate_id(), SENDER_USER, "hello")

        assert await store.list_messages() == []

    @pytest.mark.asyncio
    async def test_invalid_sender_rejected(self, store):
        conversation = await store.create_conversation()

        with pytest.raises(ValueError):
            await store.add_message(conversation.id, "system", "hello")

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, store):
        conversation = await store.create_conversation()

        with pytest.raises(ValueError):
            await store.add_message(conversation.id, SENDER_USER, "")


class TestGetMessages:
    @pytest.mark.asyncio
    async def test_empty_conversation(self, store):
        conversation = await store.create_conversation()

        assert await store.get_messages(conversation.id) == []

    @pytest.mark.asyncio
    async def test_limit_returns_most_recent_oldest_first(self, store):
        conversation = await store.create_conversation()
        for i in range(8):
            await store.add_message(conversation.id, SENDER_USER, f"m{i}")

        messages = await store.get_messages(conversation.id, limit=3)

        assert [m.text for m in messages] == ["m5", "m6", "m7"]

    @pytest.mark.asyncio
    async def test_messages_scoped_to_conversation(self, store):
        first = await store.create_conversation()
        second = await store.create_conversation()
        await store.add_message(first.id, SENDER_USER, "first")
        await store.add_message(second.id, SENDER_USER, "second")

        messages = await store.get_messages(first.id)

        assert [m.text for m in messages] == ["first"]


# =========================================================================
# Administrative reads
# =========================================================================


class TestAdministrativeReads:
    @pytest.mark.asyncio
    async def test_list_conversations_most_recent_first(self, store):
        older = await store.create_conversation()
        newer = await store.create_conversation()
        await store.add_message(older.id, SENDER_USER, "bump")

        conversations = await store.list_conversations()

        assert [c.id for c in conversations] == [older.id, newer.id]

    @pytest.mark.asyncio
    async def test_list_conversations_paginates(self, store):
        for _ in range(5):
            await store.create_conversation()

        page = await store.list_conversations(limit=2, offset=4)

        assert len(page) == 1
        assert await store.count_conversations() == 5

    @pytest.mark.asyncio
    async def test_list_messages_newest_first_with_filter(self, store):
        first = await store.create_conversation()
        second = await store.create_conversation()
        await store.add_message(first.id, SENDER_USER, "a")
        await store.add_message(second.id, SENDER_USER, "b")
        await store.add_message(first.id, SENDER_AI, "c")

        everything = await store.list_messages()
        filtered = await store.list_messages(conversation_id=first.id)

        assert [m.text for m in everything] == ["c", "b", "a"]
        assert [m.text for m in filtered] == ["c", "a"]

    @pytest.mark.asyncio
    async def test_stats(self, store):
        first = await store.create_conversation()
        await store.create_conversation()
        await store.add_message(first.id, SENDER_USER, "q1")
        await store.add_message(first.id, SENDER_AI, "a1")
        await store.add_message(first.id, SENDER_USER, "q2")

        stats = await store.get_stats()

        assert stats.total_conversations == 2
        assert stats.total_messages == 3
        assert stats.user_messages == 2
        assert stats.ai_messages == 1
        assert stats.average_messages_per_conversation == 1.5

    @pytest.mark.asyncio
    async def test_stats_empty_store(self, store):
        stats = await store.get_stats()

        assert stats.total_conversations == 0
        assert stats.average_messages_per_conversation == 0.0


# =========================================================================
# Integrity and failures
# =========================================================================


class TestIntegrity:
    @pytest.mark.asyncio
    async def test_deleting_conversation_cascades(self, store, session_factory):
        conversation = await store.create_conversation()
        await store.add_message(conversation.id, SENDER_USER, "hello")
        await store.add_message(conversation.id, SENDER_AI, "hi")

        async with session_factory() as session, session.begin():
            await session.execute(
                delete(Conversation).where(Conversation.id == conversation.id)
            )
        async with session_factory() as session:
            remaining = await session.scalar(
                select(func.count()).select_from(Message)
            )

        assert remaining == 0

    @pytest.mark.asyncio
    async def test_ping(self, store):
        await store.ping()

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_storage_fault(self, tmp_path):
        uri = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}"
        engine = create_engine(ThirdPartyConfig(database_uri=uri))
        broken = ConversationStore(create_session_factory(engine))
        try:
            with pytest.raises(StorageFault):
                await broken.ping()
            with pytest.raises(StorageFault):
                await broken.create_conversation()
        finally:
            await engine.dispose()
