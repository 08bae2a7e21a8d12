"""Identifier generation and validation.

Conversations and messages are keyed by random UUID4 strings in the
canonical hyphenated form (``3f0c9d2e-8a41-4c55-9b1e-2d7f4a6c8e10``).
Clients echo conversation ids back as ``sessionId``, so every id that
crosses the HTTP boundary is checked with ``is_valid_id`` first.
"""

import re
import uuid

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def generate_id() -> str:
    """Return a new random identifier."""
    return str(uuid.uuid4())


def is_valid_id(value: object) -> bool:
    """Whether *value* is a syntactically valid identifier string."""
    return isinstance(value, str) and _UUID_PATTERN.match(value) is not None
