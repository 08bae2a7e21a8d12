"""Prometheus metrics for the SupportChat application.

Custom business metrics that complement the auto-instrumented HTTP
metrics provided by ``prometheus-fastapi-instrumentator``.

All metrics use the ``supportchat_`` prefix.
"""

import logging

from fastapi import FastAPI
from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

from supportchat.configs.system import TracingConfig
from supportchat.core.exceptions import GENERATOR_FAILURE_KINDS

logger = logging.getLogger(__name__)

METRICS_ENDPOINT = "/metrics"

# ---------------------------------------------------------------------------
# Chat request metrics
# ---------------------------------------------------------------------------

CHAT_REQUESTS_TOTAL = Counter(
    "supportchat_chat_requests_total",
    "Total accepted chat messages, by terminal state",
    ["outcome"],  # "delivered" | "fallback"
)

MESSAGES_PERSISTED_TOTAL = Counter(
    "supportchat_messages_persisted_total",
    "Total messages written to the store",
    ["sender"],  # "user" | "ai"
)

# ---------------------------------------------------------------------------
# Generation metrics
# ---------------------------------------------------------------------------

GENERATOR_FAILURES_TOTAL = Counter(
    "supportchat_generator_failures_total",
    "Total reply-generation failures, by failure kind",
    ["kind"],
)
for _kind in GENERATOR_FAILURE_KINDS:
    GENERATOR_FAILURES_TOTAL.labels(kind=_kind)

GENERATION_LATENCY_SECONDS = Histogram(
    "supportchat_generation_latency_seconds",
    "Latency of a single generation call (success or failure)",
    buckets=(0.25, 0.5, 1, 2, 5, 10, 20, 30, 60),
)

GENERATION_INPUT_TRUNCATED_TOTAL = Counter(
    "supportchat_generation_input_truncated_total",
    "User messages truncated before being sent to the model",
)


def setup_metrics(app: FastAPI, tracing: TracingConfig) -> None:
    """Attach HTTP instrumentation middleware and the ``/metrics`` endpoint.

    Must run while the app is being built; middleware cannot be added
    once it has started.
    """
    Instrumentator(
        should_instrument_requests_inprogress=True,
        excluded_handlers=tracing.excluded_urls,
    ).instrument(app).expose(app, endpoint=METRICS_ENDPOINT)
    logger.info("Prometheus metrics initialised")
