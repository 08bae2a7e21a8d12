"""Main CLI loop for interactive chat."""

import logging
import sys
from typing import TextIO

from .client import ChatAPIClient
from .config import CLIConfig
from .formatter import ResponseFormatter

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit", "q")
HISTORY_COMMAND = "/history"
NEW_COMMAND = "/new"


class SupportChatCLI:
    """Interactive CLI for the SupportChat API."""

    def __init__(
        self,
        config: CLIConfig,
        input_stream: TextIO = sys.stdin,
        output_stream: TextIO = sys.stdout,
        client: ChatAPIClient | None = None,
    ):
        """Initialize the CLI.

        Parameters
        ----------
        config
            CLI configuration.
        input_stream
            Input stream for user input (default: stdin).
        output_stream
            Output stream for responses (default: stdout).
        client
            API client; one is built from ``config`` when omitted.
        """
        self.config = config
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.client = client or ChatAPIClient(config)
        self.formatter = ResponseFormatter(output_stream)
        self.session_id: str | None = None

    async def run(self) -> None:
        """Run the interactive CLI loop."""
        try:
            self._print_welcome()
            while True:
                try:
                    line = self._get_user_input()
                    if not line.strip():
                        continue

                    command = line.strip().lower()
                    if command in EXIT_COMMANDS:
                        self._print("Goodbye!\n")
                        break
                    if command == HISTORY_COMMAND:
                        await self._show_history()
                        continue
                    if command == NEW_COMMAND:
                        self.session_id = None
                        self._print("Started a new conversation.\n\n")
                        continue

                    await self._send(line)

                except KeyboardInterrupt:
                    self._print("\n\nInterrupted. Use 'exit' or 'quit' to exit.\n")
                except EOFError:
                    self._print("\nGoodbye!\n")
                    break
        finally:
            await self.client.close()

    async def _send(self, message: str) -> None:
        event = await self.client.send_message(message, self.session_id)
        if event.get("type") == "reply":
            self.session_id = event["session_id"]
        self.formatter.handle_event(event)

    async def _show_history(self) -> None:
        if self.session_id is None:
            self._print("No conversation yet. Send a message first.\n\n")
            return
        self.formatter.handle_event(await self.client.get_history(self.session_id))

    def _get_user_input(self) -> str:
        self._print("> ")
        line = self.input_stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n\r")

    def _print_welcome(self) -> None:
        self._print("SupportChat CLI - Interactive Support Chat\n")
        self._print(f"Connected to: {self.config.base_url}\n")
        self._print(
            f"Type a message and press Enter. {HISTORY_COMMAND} shows the "
            f"transcript, {NEW_COMMAND} starts over, 'exit' quits.\n\n"
        )

    def _print(self, text: str) -> None:
        self.output_stream.write(text)
        self.output_stream.flush()


async def main(
    host: str = "localhost",
    port: int = 3001,
    session_id: str | None = None,
    debug: bool = False,
) -> None:
    """Main entry point for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    cli = SupportChatCLI(CLIConfig(host=host, port=port))
    cli.session_id = session_id
    await cli.run()
