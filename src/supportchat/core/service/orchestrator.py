"""Message orchestrator: one "submit message" request end to end.

    validate -> resolve conversation -> persist user turn
             -> build context -> generate (or fall back)
             -> persist AI turn -> reply

Generator failures never fail the request: the fixed fallback reply is
persisted and returned instead.  Only ``InvalidRequest`` (before any
write) and ``StorageFault`` escape ``submit_message``.
"""

import logging
from dataclasses import dataclass
from typing import Any

from supportchat.configs.system import (
    DEFAULT_CONTEXT_WINDOW,
    DEFAULT_MAX_MESSAGE_LENGTH,
)
from supportchat.core.exceptions import (
    ConversationNotFound,
    GeneratorFailure,
    InvalidRequest,
)
from supportchat.core.llm.generator import ReplyGenerator
from supportchat.infra.db import (
    SENDER_AI,
    SENDER_USER,
    Conversation,
    ConversationStore,
    Message,
)
from supportchat.infra.id_utils import is_valid_id
from supportchat.infra.telemetry import (
    ATTR_CHAT_FALLBACK,
    ATTR_CONVERSATION_ID,
    SPAN_CHAT_SUBMIT,
    tracer,
)

from .context import ContextAssembler
from .metrics import CHAT_REQUESTS_TOTAL, GENERATOR_FAILURES_TOTAL

logger = logging.getLogger(__name__)

OUTCOME_DELIVERED = "delivered"
OUTCOME_FALLBACK = "fallback"


@dataclass(frozen=True)
class ChatReply:
    """Outcome of a submitted message."""

    reply: str
    session_id: str
    fallback: bool = False


@dataclass(frozen=True)
class Transcript:
    """A conversation with its full, unwindowed message list."""

    conversation: Conversation
    messages: list[Message]


def _issue(field: str, message: str) -> dict[str, Any]:
    return {"field": field, "message": message}


class MessageOrchestrator:
    """Composes store, context assembler and generator for chat requests."""

    def __init__(
        self,
        store: ConversationStore,
        assembler: ContextAssembler,
        generator: ReplyGenerator,
        *,
        fallback_reply: str,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
    ) -> None:
        self._store = store
        self._assembler = assembler
        self._generator = generator
        self._fallback_reply = fallback_reply
        self._max_message_length = max_message_length
        self._context_window = context_window

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, message: Any, session_id: Any = None) -> None:
        """Reject bad input before anything is written.

        Only the empty string is rejected here.  Whitespace-only text is
        accepted and stored; the generator refuses it and the request
        ends with the fallback reply.
        """
        issues: list[dict[str, Any]] = []
        if not isinstance(message, str) or not message:
            issues.append(_issue("message", "Message must be a non-empty string"))
        elif len(message) > self._max_message_length:
            issues.append(
                _issue(
                    "message",
                    f"Message must be at most {self._max_message_length} characters",
                )
            )
        if session_id is not None and not is_valid_id(session_id):
            issues.append(_issue("sessionId", "Session ID must be a valid UUID"))
        if issues:
            raise InvalidRequest("Invalid request", details=issues)

    # ------------------------------------------------------------------
    # Submit message
    # ------------------------------------------------------------------

    async def submit_message(
        self, message: str, session_id: str | None = None
    ) -> ChatReply:
        self.validate(message, session_id)

        with tracer.start_as_current_span(SPAN_CHAT_SUBMIT) as span:
            conversation = await self._store.get_or_create_conversation(session_id)
            span.set_attribute(ATTR_CONVERSATION_ID, conversation.id)

            await self._store.add_message(conversation.id, SENDER_USER, message)
            context = await self._assembler.build_context(
                conversation.id, self._context_window
            )

            fallback = False
            try:
                reply = await self._generator.generate_reply(message, context)
            except GeneratorFailure as exc:
                logger.warning(
                    "Reply generation failed for conversation %s (%s); "
                    "using fallback reply",
                    conversation.id,
                    exc.kind,
                    exc_info=True,
                )
                GENERATOR_FAILURES_TOTAL.labels(kind=exc.kind).inc()
                reply = self._fallback_reply
                fallback = True

            await self._store.add_message(conversation.id, SENDER_AI, reply)
            span.set_attribute(ATTR_CHAT_FALLBACK, fallback)

        CHAT_REQUESTS_TOTAL.labels(
            outcome=OUTCOME_FALLBACK if fallback else OUTCOME_DELIVERED
        ).inc()
        return ChatReply(reply=reply, session_id=conversation.id, fallback=fallback)

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------

    async def get_transcript(self, session_id: str) -> Transcript:
        """Full transcript of a conversation (no context windowing)."""
        if not is_valid_id(session_id):
            raise InvalidRequest(
                "Invalid session ID format",
                details=[_issue("sessionId", "Session ID must be a valid UUID")],
            )
        conversation = await self._store.get_conversation(session_id)
        if conversation is None:
            raise ConversationNotFound(session_id)
        messages = await self._store.get_messages(session_id)
        return Transcript(conversation=conversation, messages=messages)
