"""Prompt layout for reply generation."""

from collections.abc import Sequence

from langchain_core.prompts import PromptTemplate

from supportchat.infra.db.models import SENDER_USER, Message

CUSTOMER_LABEL = "Customer"
AGENT_LABEL = "Support Agent"
EMPTY_HISTORY = "This is the start of the conversation."
TRUNCATION_MARKER = "..."

REPLY_PROMPT = PromptTemplate.from_template(
    """{system_prompt}

Previous conversation:
{history}

Customer: {message}
Support Agent:"""
)


def render_history(messages: Sequence[Message]) -> str:
    """Render messages as alternating ``Customer:`` / ``Support Agent:`` lines."""
    if not messages:
        return EMPTY_HISTORY
    return "\n".join(
        f"{CUSTOMER_LABEL if msg.sender == SENDER_USER else AGENT_LABEL}: {msg.text}"
        for msg in messages
    )


def build_prompt(
    system_prompt: str, history: Sequence[Message], message: str
) -> str:
    return REPLY_PROMPT.format(
        system_prompt=system_prompt.strip(),
        history=render_history(history),
        message=message,
    )
