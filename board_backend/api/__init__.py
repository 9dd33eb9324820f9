"""API package exports."""

from board_backend.api.middleware import CorrelationIdMiddleware
from board_backend.api.routes import router

__all__ = ["router", "CorrelationIdMiddleware"]
