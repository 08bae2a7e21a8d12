from datetime import timedelta

from pydantic import BaseModel, Field

DEFAULT_FALLBACK_REPLY = (
    "I apologize, but I'm experiencing technical difficulties right now. "
    "Please try again in a moment, or contact our support team at "
    "support@spurstore.com for immediate assistance."
)

DEFAULT_MAX_MESSAGE_LENGTH = 2000
DEFAULT_CONTEXT_WINDOW = 10


class ThirdPartyConfig(BaseModel):
    """Configuration for third-party integrations."""

    database_uri: str = Field(
        default="sqlite+aiosqlite:///./chatbot.db",
        description="SQLAlchemy async database URI (SQLite or PostgreSQL)",
    )
    database_pool_size: int = Field(
        default=5, description="Connection pool size (ignored for SQLite)"
    )
    database_max_overflow: int = Field(
        default=10, description="Pool overflow connections (ignored for SQLite)"
    )
    database_echo: bool = Field(
        default=False, description="Echo emitted SQL to the log"
    )


class APIConfig(BaseModel):
    """API configuration settings."""

    api_key: str = Field(
        default="",
        description="Key required by the /data endpoints; empty disables auth",
    )


class LLMConfig(BaseModel):
    """OpenAI-compatible generation endpoint settings."""

    endpoint: str | None = Field(
        default=None,
        description="Base URL of the model server; None uses the provider default",
    )
    api_key: str = Field(default="", description="API key for the model server")
    model_name: str = Field(default="gpt-4o-mini", description="Model identifier")
    temperature: float = Field(
        default=0.7, description="Sampling temperature for model responses"
    )
    max_tokens: int = Field(
        default=500, description="Maximum tokens in a single response"
    )
    timeout: timedelta = Field(
        default=timedelta(seconds=30),
        description="Upper bound on a single generation call",
    )


class ChatConfig(BaseModel):
    """Configuration for chat settings."""

    max_message_length: int = Field(
        default=DEFAULT_MAX_MESSAGE_LENGTH,
        description="Maximum accepted length of a user message",
    )
    context_window: int = Field(
        default=DEFAULT_CONTEXT_WINDOW,
        ge=1,
        description="Number of most recent messages sent as generation context",
    )
    fallback_reply: str = Field(
        default=DEFAULT_FALLBACK_REPLY,
        description="Reply persisted and returned when generation fails",
    )


class PromptConfig(BaseModel):
    """System prompt configuration."""

    system_prompt: str = Field(
        default=(
            "You are a helpful and friendly customer support agent for "
            "SpurStore, a small e-commerce store."
        ),
        description="Instructional preamble placed before every conversation",
    )


class LoggingConfig(BaseModel):
    """Root logger settings."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=True, description="Emit JSON lines instead of coloured text"
    )


class TracingConfig(BaseModel):
    """OpenTelemetry tracing settings."""

    enabled: bool = Field(default=False, description="Enable OTLP tracing")
    endpoint: str = Field(default="", description="OTLP HTTP traces endpoint")
    username: str = Field(default="", description="Basic auth username")
    password: str = Field(default="", description="Basic auth password")
    service_name: str = Field(default="supportchat", description="service.name")
    sample_rate: float = Field(default=1.0, description="Root sampling ratio")
    excluded_urls: list[str] = Field(
        default_factory=lambda: ["/health", "/metrics"],
        description="Paths excluded from HTTP tracing and metrics",
    )
