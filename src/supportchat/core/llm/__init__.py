"""LLM client handle and reply generator."""

from .client import ClientHandle, build_llm, get_client_handle  # noqa: F401
from .generator import ReplyGenerator, get_reply_generator  # noqa: F401
