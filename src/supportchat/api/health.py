"""Liveness endpoint with a database round-trip."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from supportchat.core.exceptions import StorageFault

from .deps import ConversationStoreDep
from .models import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def health(store: ConversationStoreDep) -> HealthResponse | JSONResponse:
    try:
        await store.ping()
    except StorageFault as exc:
        logger.warning("Health check failed: %s", exc)
        body = HealthResponse(
            status="error",
            database="disconnected",
            error=str(exc),
            timestamp=datetime.now(timezone.utc),
        )
        return JSONResponse(
            status_code=503,
            content=jsonable_encoder(body, by_alias=True),
        )
    return HealthResponse(
        status="ok", database="connected", timestamp=datetime.now(timezone.utc)
    )
