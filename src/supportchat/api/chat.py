"""Chat endpoints: submit a message, read a transcript."""

from fastapi import APIRouter

from .deps import MessageOrchestratorDep
from .models import (
    ChatMessageRequest,
    ChatMessageResponse,
    ErrorResponse,
    HistoryResponse,
    MessageOut,
)

router = APIRouter(prefix="/chat", tags=["chat"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "/message",
    response_model=ChatMessageResponse,
    responses=_ERROR_RESPONSES,
)
async def post_message(
    body: ChatMessageRequest,
    orchestrator: MessageOrchestratorDep,
) -> ChatMessageResponse:
    """Submit a customer message and receive the reply.

    A generation failure still answers 200 with the fallback reply; both
    turns are persisted either way.  Omit ``sessionId`` (or send one that
    no longer exists) to start a new conversation.
    """
    result = await orchestrator.submit_message(body.message, body.session_id)
    return ChatMessageResponse(reply=result.reply, session_id=result.session_id)


@router.get(
    "/history/{session_id}",
    response_model=HistoryResponse,
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse}},
)
async def get_history(
    session_id: str,
    orchestrator: MessageOrchestratorDep,
) -> HistoryResponse:
    """Return the full transcript of a conversation, oldest first."""
    transcript = await orchestrator.get_transcript(session_id)
    return HistoryResponse(
        session_id=transcript.conversation.id,
        created_at=transcript.conversation.created_at,
        messages=[MessageOut.model_validate(m) for m in transcript.messages],
    )
