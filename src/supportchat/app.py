"""FastAPI application entry point."""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, FastAPI

from supportchat.api import (
    chat_router,
    data_router,
    health_router,
    register_exception_handlers,
)
from supportchat.configs.config import get_app_config
from supportchat.core.llm import build_llm
from supportchat.core.service.metrics import setup_metrics
from supportchat.infra.db import build_db
from supportchat.infra.lifespan import inject
from supportchat.infra.logging import setup_logging
from supportchat.infra.telemetry import init_telemetry

logger = logging.getLogger(__name__)


@inject
async def lifespan(
    app: FastAPI,
    _db: Annotated[None, Depends(build_db)],
    _llm: Annotated[None, Depends(build_llm)],
) -> AsyncGenerator[None, None]:
    """Application lifespan: database and chat model are built by dependencies."""
    logger.info("Starting SupportChat application...")
    yield
    logger.info("Shutting down SupportChat application...")


def get_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Logging, tracing and metrics middleware are wired here rather than
    in the lifespan: the middleware stack is frozen once the app starts.
    """
    config = get_app_config()
    setup_logging(config.logging)

    app = FastAPI(
        title="SupportChat",
        description="Customer-support chat relay backed by an LLM",
        version="0.1.0",
        lifespan=lifespan,
    )

    init_telemetry(app, config.tracing)
    setup_metrics(app, config.tracing)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(chat_router)
    app.include_router(data_router)

    return app


app = get_app()
