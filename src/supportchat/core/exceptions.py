"""Error taxonomy shared by the store, the generator and the API layer."""

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Request / storage errors
# ---------------------------------------------------------------------------


class InvalidRequest(Exception):
    """Malformed or out-of-bounds client input (HTTP 400, no side effects)."""

    def __init__(
        self, message: str, *, details: list[dict[str, Any]] | None = None
    ) -> None:
        super().__init__(message)
        self.details = details


class ConversationNotFound(Exception):
    """The referenced conversation does not exist (HTTP 404)."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = conversation_id


class StorageFault(Exception):
    """The persistence layer failed (HTTP 500)."""


class Unauthorized(Exception):
    """Missing or wrong API key on a protected endpoint (HTTP 401)."""


# ---------------------------------------------------------------------------
# Generator failures: never surfaced over HTTP
# ---------------------------------------------------------------------------

KIND_INVALID_CREDENTIALS = "invalid_credentials"
KIND_RATE_LIMITED = "rate_limited"
KIND_TIMEOUT = "timeout"
KIND_EMPTY_RESPONSE = "empty_response"
KIND_EMPTY_INPUT = "empty_input"
KIND_PROVIDER_ERROR = "provider_error"

GENERATOR_FAILURE_KINDS = frozenset(
    {
        KIND_INVALID_CREDENTIALS,
        KIND_RATE_LIMITED,
        KIND_TIMEOUT,
        KIND_EMPTY_RESPONSE,
        KIND_EMPTY_INPUT,
        KIND_PROVIDER_ERROR,
    }
)


class GeneratorFailure(Exception):
    """Base class for reply-generation failures.

    Subclasses carry a stable ``kind`` string; provider exception objects
    are only ever attached as ``__cause__``.
    """

    kind: str = KIND_PROVIDER_ERROR


class InvalidCredentials(GeneratorFailure):
    """API key missing, rejected, or the client could not be constructed."""

    kind = KIND_INVALID_CREDENTIALS


class RateLimited(GeneratorFailure):
    """Provider quota exhausted or request throttled."""

    kind = KIND_RATE_LIMITED


class GenerationTimeout(GeneratorFailure):
    """No response within the generation time budget."""

    kind = KIND_TIMEOUT


class EmptyResponse(GeneratorFailure):
    """Provider answered with empty or whitespace-only text."""

    kind = KIND_EMPTY_RESPONSE


class EmptyInput(GeneratorFailure):
    """User message is empty after trimming."""

    kind = KIND_EMPTY_INPUT


class ProviderError(GeneratorFailure):
    """Any other provider-side failure."""

    kind = KIND_PROVIDER_ERROR
