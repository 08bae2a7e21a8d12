"""Shared fixtures: temporary SQLite database, stub chat models, test client."""

from collections.abc import AsyncGenerator, Iterator
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from supportchat.app import app
from supportchat.configs.config import AppConfig, get_app_config
from supportchat.configs.system import APIConfig, ThirdPartyConfig
from supportchat.core.llm.client import ClientHandle, get_client_handle
from supportchat.infra.db import (
    ConversationStore,
    create_engine,
    create_session_factory,
    create_tables,
)

PROVIDER_URL = "https://api.openai.com/v1/chat/completions"


# =========================================================================
# Database
# =========================================================================


@pytest.fixture
def database_uri(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def engine(database_uri: str) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine(ThirdPartyConfig(database_uri=database_uri))
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> ConversationStore:
    return ConversationStore(session_factory)


# =========================================================================
# Chat model stubs
# =========================================================================


def mock_chat_model(
    reply: str = "Happy to help!", side_effect: object = None
) -> MagicMock:
    """A chat model whose ``ainvoke`` returns *reply* or runs *side_effect*."""
    model = MagicMock()
    model.ainvoke = AsyncMock(
        return_value=AIMessage(content=reply), side_effect=side_effect
    )
    return model


def provider_response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", PROVIDER_URL))


def provider_request() -> httpx.Request:
    return httpx.Request("POST", PROVIDER_URL)


# =========================================================================
# Application
# =========================================================================


@pytest.fixture
def api_key() -> str:
    return ""


@pytest.fixture
def app_config(database_uri: str, api_key: str) -> AppConfig:
    return AppConfig(
        third_party=ThirdPartyConfig(database_uri=database_uri),
        api=APIConfig(api_key=api_key),
    )


@pytest.fixture
def chat_model() -> object:
    return FakeListChatModel(responses=["Happy to help!"])


@pytest.fixture
def client(app_config: AppConfig, chat_model: object) -> Iterator[TestClient]:
    app.dependency_overrides[get_app_config] = lambda: app_config
    app.dependency_overrides[get_client_handle] = lambda: ClientHandle(
        client=chat_model
    )
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
