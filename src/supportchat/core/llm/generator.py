"""Reply generator: the only component that talks to the model provider.

``ReplyGenerator.generate_reply`` is a pure function of the user message,
the history window and static configuration.  Every failure leaves as a
``GeneratorFailure`` subclass; provider exceptions are translated by
``translate_provider_error`` and only kept as ``__cause__``.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from datetime import timedelta
from typing import Annotated, Any

import openai
from fastapi import Depends

from supportchat.configs.config import (
    get_chat_config,
    get_llm_config,
    get_prompt_config,
)
from supportchat.configs.system import (
    DEFAULT_CONTEXT_WINDOW,
    DEFAULT_MAX_MESSAGE_LENGTH,
    ChatConfig,
    LLMConfig,
    PromptConfig,
)
from supportchat.core.exceptions import (
    EmptyInput,
    EmptyResponse,
    GenerationTimeout,
    GeneratorFailure,
    InvalidCredentials,
    ProviderError,
    RateLimited,
)
from supportchat.core.service.metrics import (
    GENERATION_INPUT_TRUNCATED_TOTAL,
    GENERATION_LATENCY_SECONDS,
)
from supportchat.infra.db.models import Message
from supportchat.infra.telemetry import (
    ATTR_LLM_FAILURE_KIND,
    ATTR_LLM_MODEL,
    ATTR_LLM_PROMPT_CHARS,
    ATTR_LLM_TRUNCATED,
    SPAN_LLM_GENERATE,
    tracer,
)

from .client import MISSING_API_KEY, ClientHandle, get_client_handle
from .prompt import TRUNCATION_MARKER, build_prompt

logger = logging.getLogger(__name__)


def translate_provider_error(exc: BaseException) -> GeneratorFailure:
    """Map a provider/client exception onto the failure taxonomy."""
    if isinstance(exc, GeneratorFailure):
        return exc
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return InvalidCredentials("Model provider rejected the configured credentials")
    if isinstance(exc, openai.RateLimitError):
        return RateLimited("Model provider quota exceeded or request throttled")
    if isinstance(exc, (openai.APITimeoutError, TimeoutError)):
        return GenerationTimeout("Model provider did not answer in time")
    return ProviderError("Model provider request failed")


def truncate_message(message: str, max_chars: int) -> tuple[str, bool]:
    """Cut *message* to *max_chars* and append the truncation marker."""
    if len(message) <= max_chars:
        return message, False
    return message[:max_chars] + TRUNCATION_MARKER, True


def _response_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part if isinstance(part, str) else str(part.get("text", ""))
            for part in content
        )
    return ""


class ReplyGenerator:
    """Produces an AI reply for a user message plus history."""

    def __init__(
        self,
        handle: ClientHandle,
        *,
        system_prompt: str,
        timeout: timedelta,
        max_input_chars: int = DEFAULT_MAX_MESSAGE_LENGTH,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        model_name: str = "",
    ) -> None:
        self._handle = handle
        self._system_prompt = system_prompt
        self._timeout = timeout
        self._max_input_chars = max_input_chars
        self._context_window = context_window
        self._model_name = model_name

    async def generate_reply(
        self, user_message: str, history: Sequence[Message]
    ) -> str:
        """Generate a reply.

        Args:
            user_message: The customer's message; truncated (not rejected)
                when longer than the input limit.
            history: Conversation messages, oldest first.  Only the last
                ``context_window`` entries are rendered.

        Returns:
            The trimmed, non-empty reply text.

        Raises:
            GeneratorFailure: one of ``EmptyInput``, ``InvalidCredentials``,
                ``RateLimited``, ``GenerationTimeout``, ``EmptyResponse``,
                ``ProviderError``.
        """
        if not user_message or not user_message.strip():
            raise EmptyInput("Message cannot be empty")

        if not self._handle.ok:
            raise InvalidCredentials(self._handle.error or MISSING_API_KEY)
        client = self._handle.client

        message, truncated = truncate_message(user_message, self._max_input_chars)
        if truncated:
            GENERATION_INPUT_TRUNCATED_TOTAL.inc()
        window = list(history)[-self._context_window :]
        prompt = build_prompt(self._system_prompt, window, message)

        with tracer.start_as_current_span(SPAN_LLM_GENERATE) as span:
            span.set_attribute(ATTR_LLM_MODEL, self._model_name)
            span.set_attribute(ATTR_LLM_PROMPT_CHARS, len(prompt))
            span.set_attribute(ATTR_LLM_TRUNCATED, truncated)
            start = time.monotonic()
            try:
                async with asyncio.timeout(self._timeout.total_seconds()):
                    response = await client.ainvoke(prompt)
                reply = _response_text(response).strip()
                if not reply:
                    raise EmptyResponse("Empty response from model provider")
            except Exception as exc:
                failure = translate_provider_error(exc)
                span.set_attribute(ATTR_LLM_FAILURE_KIND, failure.kind)
                if failure is exc:
                    raise
                raise failure from exc
            finally:
                GENERATION_LATENCY_SECONDS.observe(time.monotonic() - start)

        return reply


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------


def get_reply_generator(
    handle: Annotated[ClientHandle, Depends(get_client_handle)],
    llm_config: Annotated[LLMConfig, Depends(get_llm_config)],
    chat_config: Annotated[ChatConfig, Depends(get_chat_config)],
    prompt_config: Annotated[PromptConfig, Depends(get_prompt_config)],
) -> ReplyGenerator:
    return ReplyGenerator(
        handle,
        system_prompt=prompt_config.system_prompt,
        timeout=llm_config.timeout,
        max_input_chars=chat_config.max_message_length,
        context_window=chat_config.context_window,
        model_name=llm_config.model_name,
    )
