"""Authentication API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
import structlog

from board_backend.api.dependencies import get_bearer_token
from board_backend.models.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenPairResponse,
    ValidateTokenResponse,
)
from board_backend.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login")
async def login(request: LoginRequest) -> LoginResponse:
    """Login with email and password.

    Args:
        request: Login credentials

    Returns:
        LoginResponse with tokens and profile basics

    Raises:
        UnauthorizedError: If credentials are invalid (401 "Invalid credentials")
    """
    auth_service = AuthService()
    user = await auth_service.validate_user(request.email, request.password)
    return await auth_service.login(user)


@router.post("/refresh")
async def refresh(request: Optional[RefreshRequest] = None) -> TokenPairResponse:
    """Exchange a refresh token for a new access/refresh pair.

    Performs rotation: the presented refresh token is revoked and can not be
    used again. A missing token is treated like an invalid one.

    Raises:
        UnauthorizedError: If the token is missing, invalid, expired or revoked
    """
    auth_service = AuthService()
    token = request.refresh_token if request is not None else None
    return await auth_service.refresh(token)


@router.get("/validate-token")
async def validate_token(token: str = Depends(get_bearer_token)) -> ValidateTokenResponse:
    """Report whether a bearer access token is currently valid.

    Returns 401 only when the Authorization header is missing; an invalid or
    expired token yields ``{"valid": false}``.
    """
    auth_service = AuthService()
    return ValidateTokenResponse(valid=auth_service.validate_access_token(token))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(request: Optional[RefreshRequest] = None) -> Response:
    """Revoke a refresh token. Always succeeds."""
    auth_service = AuthService()
    token = request.refresh_token if request is not None else None
    await auth_service.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
