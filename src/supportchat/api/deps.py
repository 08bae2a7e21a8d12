"""Centralized FastAPI dependency type aliases.

Import these ``*Dep`` aliases in route modules instead of writing
``Annotated[T, Depends(get_xxx)]`` everywhere.  Each alias wraps a
single ``get_*`` factory and can be overridden in tests via
``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from supportchat.core.service.deps import get_message_orchestrator
from supportchat.core.service.orchestrator import MessageOrchestrator
from supportchat.infra.db import ConversationStore, get_conversation_store

ConversationStoreDep = Annotated[ConversationStore, Depends(get_conversation_store)]
MessageOrchestratorDep = Annotated[
    MessageOrchestrator, Depends(get_message_orchestrator)
]
