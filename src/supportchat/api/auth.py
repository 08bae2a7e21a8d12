"""API-key guard for the administrative ``/data`` endpoints."""

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, Query

from supportchat.configs.config import get_api_config
from supportchat.configs.system import APIConfig
from supportchat.core.exceptions import Unauthorized

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
API_KEY_QUERY = "apiKey"


def require_api_key(
    config: Annotated[APIConfig, Depends(get_api_config)],
    header_key: Annotated[str | None, Header(alias=API_KEY_HEADER)] = None,
    query_key: Annotated[str | None, Query(alias=API_KEY_QUERY)] = None,
) -> None:
    """Accept the request when the supplied key matches ``api.api_key``.

    With no key configured every request passes (local development) and
    a warning is logged.
    """
    if not config.api_key:
        logger.warning("API key not set; data endpoints are publicly accessible")
        return

    supplied = header_key or query_key
    if supplied and secrets.compare_digest(supplied, config.api_key):
        return

    raise Unauthorized(
        f"Valid API key required. Provide it via {API_KEY_HEADER} header "
        f"or ?{API_KEY_QUERY} query parameter."
    )
