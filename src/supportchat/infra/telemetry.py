"""OpenTelemetry bootstrap: tracing initialisation and span names.

Configures a ``TracerProvider`` with an OTLP HTTP exporter when tracing is
enabled via ``TracingConfig``.  When disabled the module is a graceful
no-op and ``tracer`` hands out non-recording spans.

Auto-instrumentations wired here:

- **FastAPI** (inbound HTTP spans)
- **httpx** (outbound HTTP spans, including the OpenAI client)
- **SQLAlchemy** (DB spans, via ``instrument_sqlalchemy`` from ``build_db``)

Usage::

    from supportchat.infra.telemetry import SPAN_LLM_GENERATE, tracer

    with tracer.start_as_current_span(SPAN_LLM_GENERATE) as span:
        ...
"""

from __future__ import annotations

import base64
import logging

from opentelemetry import trace

from supportchat.configs.system import TracingConfig

logger = logging.getLogger(__name__)

_otel_enabled = False

tracer = trace.get_tracer("supportchat")

# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------

SPAN_CHAT_SUBMIT = "chat.submit"
SPAN_LLM_GENERATE = "llm.generate"
SPAN_STORE_ADD_MESSAGE = "store.add_message"
SPAN_CONTEXT_BUILD = "context.build"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_CONVERSATION_ID = "chat.conversation_id"
ATTR_CHAT_FALLBACK = "chat.fallback"
ATTR_MESSAGE_SENDER = "store.sender"
ATTR_CONTEXT_SIZE = "context.message_count"
ATTR_LLM_MODEL = "llm.model"
ATTR_LLM_PROMPT_CHARS = "llm.prompt_chars"
ATTR_LLM_TRUNCATED = "llm.input_truncated"
ATTR_LLM_FAILURE_KIND = "llm.failure_kind"


def init_telemetry(
    app: object | None = None,
    settings: TracingConfig | None = None,
) -> None:
    """Initialise the OTEL ``TracerProvider`` and auto-instrumentations.

    Must run before the application starts serving, because the FastAPI
    instrumentor installs ASGI middleware.  No-op when *settings* is
    ``None`` or tracing is disabled.
    """
    global _otel_enabled  # noqa: PLW0603

    if settings is None or not settings.enabled:
        logger.info("OpenTelemetry tracing disabled.")
        return

    if not settings.endpoint:
        logger.warning(
            "Tracing enabled but no endpoint configured; "
            "skipping OpenTelemetry setup."
        )
        return

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

    resource = Resource.create({"service.name": settings.service_name})
    sampler = ParentBased(root=TraceIdRatioBased(settings.sample_rate))
    provider = TracerProvider(resource=resource, sampler=sampler)

    headers: dict[str, str] = {}
    if settings.username and settings.password:
        credentials = f"{settings.username}:{settings.password}"
        encoded = base64.b64encode(credentials.encode()).decode()
        headers["Authorization"] = f"Basic {encoded}"

    exporter = OTLPSpanExporter(endpoint=settings.endpoint, headers=headers)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    if app is not None:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        excluded = ",".join(settings.excluded_urls) if settings.excluded_urls else ""
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded)

    from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

    HTTPXClientInstrumentor().instrument()

    _otel_enabled = True
    logger.info(
        "OpenTelemetry tracing initialised (service=%s).", settings.service_name
    )


def instrument_sqlalchemy(engine: object) -> None:
    """Instrument a SQLAlchemy engine for DB span tracing.

    Call this *after* the engine has been created.  No-op when OTEL is
    not enabled.
    """
    if not _otel_enabled:
        return

    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    sync_engine = getattr(engine, "sync_engine", engine)
    SQLAlchemyInstrumentor().instrument(engine=sync_engine)
    logger.info("SQLAlchemy engine instrumented for OTEL tracing.")
