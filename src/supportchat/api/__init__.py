"""HTTP API routers and error handling."""

from .chat import router as chat_router
from .data import router as data_router
from .exceptions import register_exception_handlers
from .health import router as health_router

__all__ = [
    "chat_router",
    "data_router",
    "health_router",
    "register_exception_handlers",
]
