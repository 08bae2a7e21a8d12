"""Context assembler: the bounded history window sent to the generator."""

from supportchat.configs.system import DEFAULT_CONTEXT_WINDOW
from supportchat.infra.db import ConversationStore, Message
from supportchat.infra.telemetry import (
    ATTR_CONTEXT_SIZE,
    ATTR_CONVERSATION_ID,
    SPAN_CONTEXT_BUILD,
    tracer,
)


class ContextAssembler:
    """Builds generation context from a conversation's stored messages."""

    def __init__(
        self, store: ConversationStore, default_window: int = DEFAULT_CONTEXT_WINDOW
    ) -> None:
        self._store = store
        self._default_window = default_window

    async def build_context(
        self, conversation_id: str, max_messages: int | None = None
    ) -> list[Message]:
        """Return the last *max_messages* messages, oldest first.

        The window is a hard cap; there is no way to request unbounded
        history through this method.
        """
        window = self._default_window if max_messages is None else max_messages
        if window < 1:
            raise ValueError(f"max_messages must be >= 1, got {window}")

        with tracer.start_as_current_span(SPAN_CONTEXT_BUILD) as span:
            span.set_attribute(ATTR_CONVERSATION_ID, conversation_id)
            messages = await self._store.get_messages(conversation_id, limit=window)
            span.set_attribute(ATTR_CONTEXT_SIZE, len(messages))
        return messages
