"""Read-only administrative endpoints over the stored conversations.

Every route requires the API key (see ``require_api_key``).
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from supportchat.core.exceptions import ConversationNotFound, InvalidRequest
from supportchat.infra.id_utils import is_valid_id

from .auth import require_api_key
from .deps import ConversationStoreDep
from .models import (
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationOut,
    ErrorResponse,
    MessageFilters,
    MessageListResponse,
    MessageOut,
    MessagePagination,
    Pagination,
    StatsResponse,
)

MAX_PAGE_SIZE = 100

router = APIRouter(
    prefix="/data",
    tags=["data"],
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

LimitQuery = Annotated[int | None, Query(ge=1, le=MAX_PAGE_SIZE)]
OffsetQuery = Annotated[int | None, Query(ge=0)]


def _require_conversation_id(value: str) -> None:
    if not is_valid_id(value):
        raise InvalidRequest(
            "Invalid conversation ID format",
            details=[{"field": "conversationId", "message": "Must be a valid UUID"}],
        )


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    store: ConversationStoreDep,
    limit: LimitQuery = None,
    offset: OffsetQuery = None,
) -> ConversationListResponse:
    """Conversations, most recently updated first."""
    conversations = await store.list_conversations(limit, offset)
    total = await store.count_conversations()
    has_more = (
        limit is not None and offset is not None and offset + limit < total
    )
    return ConversationListResponse(
        conversations=[ConversationOut.model_validate(c) for c in conversations],
        pagination=Pagination(
            total=total,
            limit=limit or total,
            offset=offset or 0,
            has_more=has_more,
        ),
    )


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_conversation(
    conversation_id: str,
    store: ConversationStoreDep,
) -> ConversationDetailResponse:
    _require_conversation_id(conversation_id)
    conversation = await store.get_conversation(conversation_id)
    if conversation is None:
        raise ConversationNotFound(conversation_id)
    messages = await store.get_messages(conversation_id)
    return ConversationDetailResponse(
        id=conversation.id,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        messages=[MessageOut.model_validate(m) for m in messages],
    )


@router.get("/messages", response_model=MessageListResponse)
async def list_messages(
    store: ConversationStoreDep,
    limit: LimitQuery = None,
    offset: OffsetQuery = None,
    conversation_id: Annotated[str | None, Query(alias="conversationId")] = None,
) -> MessageListResponse:
    """Messages across all conversations, newest first."""
    if conversation_id:
        _require_conversation_id(conversation_id)
    else:
        conversation_id = None
    messages = await store.list_messages(limit, offset, conversation_id)
    return MessageListResponse(
        messages=[MessageOut.model_validate(m) for m in messages],
        pagination=MessagePagination(
            limit=limit or len(messages),
            offset=offset or 0,
        ),
        filters=MessageFilters(conversation_id=conversation_id),
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(store: ConversationStoreDep) -> StatsResponse:
    stats = await store.get_stats()
    return StatsResponse(
        total_conversations=stats.total_conversations,
        total_messages=stats.total_messages,
        user_messages=stats.user_messages,
        ai_messages=stats.ai_messages,
        average_messages_per_conversation=stats.average_messages_per_conversation,
        timestamp=datetime.now(timezone.utc),
    )
