"""Models package exports."""

from board_backend.models.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenPairResponse,
    TokenPayload,
    ValidateTokenResponse,
)
from board_backend.models.user import RefreshToken, Role, User
from board_backend.models.visitor import DashboardVisitorsResponse, VisitorSummary

__all__ = [
    "DashboardVisitorsResponse",
    "LoginRequest",
    "LoginResponse",
    "RefreshRequest",
    "RefreshToken",
    "Role",
    "TokenPairResponse",
    "TokenPayload",
    "User",
    "ValidateTokenResponse",
    "VisitorSummary",
]
