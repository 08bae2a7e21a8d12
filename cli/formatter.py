"""Renders client events to the terminal."""

import logging
from typing import Any, TextIO

logger = logging.getLogger(__name__)

SENDER_LABELS = {"user": "You", "ai": "Agent"}


class ResponseFormatter:
    """Formats ``reply``, ``history`` and ``error`` events."""

    def __init__(self, output: TextIO):
        self.output = output

    def handle_event(self, event: dict[str, Any]) -> None:
        event_type = event.get("type")

        if event_type == "reply":
            self._print(f"\nAgent: {event.get('reply', '')}\n\n")

        elif event_type == "history":
            messages = event.get("messages") or []
            if not messages:
                self._print("\n(no messages yet)\n\n")
                return
            self._print(f"\nConversation {event.get('session_id')}\n")
            for message in messages:
                label = SENDER_LABELS.get(message.get("sender"), "?")
                self._print(f"  [{message.get('timestamp')}] {label}: ")
                self._print(f"{message.get('text', '')}\n")
            self._print("\n")

        elif event_type == "error":
            message = event.get("message", "Unknown error")
            code = event.get("code", "UNKNOWN")
            self._print(f"\n❌ Error [{code}]: {message}\n\n")

        else:
            logger.debug("Unknown event type: %s, event: %s", event_type, event)

    def _print(self, text: str) -> None:
        self.output.write(text)
        self.output.flush()
