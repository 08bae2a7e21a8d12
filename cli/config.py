"""Configuration for the CLI tool."""

from pydantic import BaseModel, Field


class CLIConfig(BaseModel):
    """CLI connection settings."""

    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=3001, description="Server port")
    timeout: float = Field(
        default=60.0, description="Per-request timeout in seconds"
    )

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def message_url(self) -> str:
        return f"{self.base_url}/chat/message"

    def history_url(self, session_id: str) -> str:
        return f"{self.base_url}/chat/history/{session_id}"
