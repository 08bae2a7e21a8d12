"""ContextAssembler windowing over stored messages."""

import pytest

from supportchat.core.service.context import ContextAssembler
from supportchat.infra.db import SENDER_AI, SENDER_USER


async def _fill(store, count: int) -> str:
    conversation = await store.create_conversation()
    for i in range(count):
        sender = SENDER_USER if i % 2 == 0 else SENDER_AI
        await store.add_message(conversation.id, sender, f"m{i}")
    return conversation.id


class TestBuildContext:
    @pytest.mark.asyncio
    async def test_default_window_is_last_ten_oldest_first(self, store):
        conversation_id = await _fill(store, 30)

        context = await ContextAssembler(store).build_context(conversation_id)

        assert [m.text for m in context] == [f"m{i}" for i in range(20, 30)]

    @pytest.mark.asyncio
    async def test_short_conversation_returned_whole(self, store):
        conversation_id = await _fill(store, 4)

        context = await ContextAssembler(store).build_context(conversation_id)

        assert [m.text for m in context] == ["m0", "m1", "m2", "m3"]

    @pytest.mark.asyncio
    async def test_explicit_window(self, store):
        conversation_id = await _fill(store, 6)

        context = await ContextAssembler(store).build_context(conversation_id, 2)

        assert [m.text for m in context] == ["m4", "m5"]

    @pytest.mark.asyncio
    async def test_configured_default_window(self, store):
        conversation_id = await _fill(store, 6)

        context = await ContextAssembler(store, default_window=3).build_context(
            conversation_id
        )

        assert len(context) == 3

    @pytest.mark.asyncio
    async def test_empty_conversation(self, store):
        conversation_id = await _fill(store, 0)

        assert await ContextAssembler(store).build_context(conversation_id) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("window", [0, -1])
    async def test_window_must_be_positive(self, store, window):
        conversation_id = await _fill(store, 2)

        with pytest.raises(ValueError):
            await ContextAssembler(store).build_context(conversation_id, window)
