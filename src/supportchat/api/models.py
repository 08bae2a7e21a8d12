"""Pydantic models for the HTTP API.

Field names are snake_case in Python and camelCase on the wire
(``session_id`` <-> ``sessionId``).
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model: camelCase aliases, construction by name or from ORM rows."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatMessageRequest(ApiModel):
    """Body of ``POST /chat/message``.

    Only types are checked here; length and id-format rules are enforced
    by the orchestrator so that every entry point shares them.
    """

    message: str = Field(description="Customer message text")
    session_id: str | None = Field(
        default=None, description="Conversation id returned by a previous call"
    )


class ChatMessageResponse(ApiModel):
    reply: str = Field(description="AI reply (or the fallback text)")
    session_id: str = Field(description="Conversation id to send with the next call")


class MessageOut(ApiModel):
    id: str
    conversation_id: str
    sender: Literal["user", "ai"]
    text: str
    timestamp: datetime


class ConversationOut(ApiModel):
    id: str
    created_at: datetime
    updated_at: datetime


class HistoryResponse(ApiModel):
    """Body of ``GET /chat/history/{sessionId}``."""

    session_id: str
    created_at: datetime
    messages: list[MessageOut]


# ---------------------------------------------------------------------------
# Data (administrative) endpoints
# ---------------------------------------------------------------------------


class Pagination(ApiModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class ConversationListResponse(ApiModel):
    conversations: list[ConversationOut]
    pagination: Pagination


class ConversationDetailResponse(ConversationOut):
    messages: list[MessageOut]


class MessagePagination(ApiModel):
    limit: int
    offset: int


class MessageFilters(ApiModel):
    conversation_id: str | None = None


class MessageListResponse(ApiModel):
    messages: list[MessageOut]
    pagination: MessagePagination
    filters: MessageFilters


class StatsResponse(ApiModel):
    total_conversations: int
    total_messages: int
    user_messages: int
    ai_messages: int
    average_messages_per_conversation: float
    timestamp: datetime


# ---------------------------------------------------------------------------
# Health and errors
# ---------------------------------------------------------------------------


class HealthResponse(ApiModel):
    status: Literal["ok", "error"]
    database: Literal["connected", "disconnected"]
    timestamp: datetime
    error: str | None = None


class ErrorResponse(BaseModel):
    """Error body shared by every non-2xx JSON response."""

    error: str = Field(description="Short error summary")
    message: str | None = Field(default=None, description="Human-readable detail")
    details: list[dict[str, Any]] | None = Field(
        default=None, description="Per-field validation issues"
    )
