"""Global exception handlers.

Maps the error taxonomy onto HTTP responses.  Generator failures have
no handler on purpose: the orchestrator absorbs them into a fallback
reply, so one reaching this layer is an unexpected fault (500).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from supportchat.core.exceptions import (
    ConversationNotFound,
    InvalidRequest,
    StorageFault,
    Unauthorized,
)

from .models import ErrorResponse

logger = logging.getLogger(__name__)


def _error(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body, exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on ``app``."""

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(
            400,
            ErrorResponse(
                error="Invalid request", details=jsonable_encoder(exc.errors())
            ),
        )

    @app.exception_handler(InvalidRequest)
    async def handle_invalid_request(
        request: Request, exc: InvalidRequest
    ) -> JSONResponse:
        return _error(400, ErrorResponse(error=str(exc), details=exc.details))

    @app.exception_handler(ConversationNotFound)
    async def handle_not_found(
        request: Request, exc: ConversationNotFound
    ) -> JSONResponse:
        return _error(404, ErrorResponse(error="Conversation not found"))

    @app.exception_handler(Unauthorized)
    async def handle_unauthorized(request: Request, exc: Unauthorized) -> JSONResponse:
        return _error(401, ErrorResponse(error="Unauthorized", message=str(exc)))

    @app.exception_handler(StorageFault)
    async def handle_storage_fault(
        request: Request, exc: StorageFault
    ) -> JSONResponse:
        logger.error(
            "Storage fault on %s %s", request.method, request.url.path, exc_info=exc
        )
        return _error(
            500,
            ErrorResponse(
                error="Internal server error",
                message="An unexpected error occurred. Please try again later.",
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return _error(
            500,
            ErrorResponse(
                error="Internal server error",
                message="An unexpected error occurred.",
            ),
        )
