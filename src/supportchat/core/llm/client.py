"""Chat model construction, resolved once at start-up.

``build_llm`` (lifespan dependency) builds the LangChain ``ChatOpenAI``
client and stores the outcome on ``app.state`` as a ``ClientHandle``:
either a ready client or the reason construction failed.  A missing
API key therefore never stops the service from starting; it only turns
every generation attempt into an ``InvalidCredentials`` failure.
"""

import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from supportchat.configs.config import get_llm_config
from supportchat.configs.system import LLMConfig
from supportchat.infra.lifespan import get_app

logger = logging.getLogger(__name__)

MISSING_API_KEY = "LLM API key is not configured"


@dataclass(frozen=True)
class ClientHandle:
    """Result of building the chat model: a client or an error."""

    client: BaseChatModel | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.client is not None


def create_chat_model(config: LLMConfig) -> ChatOpenAI:
    """Create a ChatOpenAI instance with the fixed generation settings.

    Retries are disabled: a request gets exactly one attempt and falls
    back on failure.
    """
    return ChatOpenAI(
        base_url=config.endpoint,
        api_key=config.api_key,
        model=config.model_name,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout.total_seconds(),
        max_retries=0,
    )


def build_client_handle(config: LLMConfig) -> ClientHandle:
    if not config.api_key:
        logger.warning("%s; replies will use the fallback text", MISSING_API_KEY)
        return ClientHandle(error=MISSING_API_KEY)
    try:
        client = create_chat_model(config)
    except Exception as exc:  # noqa: BLE001 (recorded on the handle)
        logger.error("Failed to initialise chat model: %s", exc, exc_info=True)
        return ClientHandle(error=f"Chat model initialisation failed: {exc}")
    logger.info("Chat model ready (model=%s)", config.model_name)
    return ClientHandle(client=client)


# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_llm(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[LLMConfig, Depends(get_llm_config)],
) -> AsyncGenerator[None, None]:
    """Build the chat model once and attach the handle to ``app.state``."""
    app.state.llm_handle = build_client_handle(config)
    yield


# ---------------------------------------------------------------------------
# Per-request dependency
# ---------------------------------------------------------------------------


def get_client_handle(request: Request) -> ClientHandle:
    """FastAPI dependency: reads from ``app.state``."""
    return request.app.state.llm_handle
