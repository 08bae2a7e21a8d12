"""FastAPI dependency factories for chat services.

Per-request factories with an explicit ``Depends()`` chain: the store
comes from ``app.state.session_factory``, the generator from the
start-up ``ClientHandle``.  Tests override ``get_app_config`` or
``get_client_handle`` to swap configuration or the model.
"""

from typing import Annotated

from fastapi import Depends

from supportchat.configs.config import get_chat_config
from supportchat.configs.system import ChatConfig
from supportchat.core.llm.generator import ReplyGenerator, get_reply_generator
from supportchat.infra.db import ConversationStore, get_conversation_store

from .context import ContextAssembler
from .orchestrator import MessageOrchestrator


def get_context_assembler(
    store: Annotated[ConversationStore, Depends(get_conversation_store)],
    chat_config: Annotated[ChatConfig, Depends(get_chat_config)],
) -> ContextAssembler:
    return ContextAssembler(store, default_window=chat_config.context_window)


def get_message_orchestrator(
    store: Annotated[ConversationStore, Depends(get_conversation_store)],
    assembler: Annotated[ContextAssembler, Depends(get_context_assembler)],
    generator: Annotated[ReplyGenerator, Depends(get_reply_generator)],
    chat_config: Annotated[ChatConfig, Depends(get_chat_config)],
) -> MessageOrchestrator:
    """Create the orchestrator for one request.

    FastAPI caches ``get_conversation_store`` per request, so the
    orchestrator and its assembler share one store instance.
    """
    return MessageOrchestrator(
        store,
        assembler,
        generator,
        fallback_reply=chat_config.fallback_reply,
        max_message_length=chat_config.max_message_length,
        context_window=chat_config.context_window,
    )
