"""Application settings (pydantic-settings)."""

from .config import (  # noqa: F401
    AppConfig,
    get_api_config,
    get_app_config,
    get_chat_config,
    get_llm_config,
    get_prompt_config,
)
