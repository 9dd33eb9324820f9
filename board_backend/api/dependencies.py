"""FastAPI dependencies for authentication."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from board_backend.errors import UnauthorizedError
from board_backend.models.auth import TokenPayload
from board_backend.models.user import User
from board_backend.services.auth_service import AuthService
from board_backend.services.user_service import UserService

# auto_error is off so a missing header is reported as 401 by our handler
bearer_scheme = HTTPBearer(auto_error=False)


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Extract the raw token from an ``Authorization: Bearer`` header.

    Raises:
        UnauthorizedError: If the header is missing or not a bearer credential
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    return credentials.credentials


async def get_token_payload(token: str = Depends(get_bearer_token)) -> TokenPayload:
    """Verify the bearer access token and return its claims.

    Raises:
        UnauthorizedError: If the token is invalid or expired
    """
    auth_service = AuthService()
    return auth_service.decode_access_token(token)


async def get_current_user(
    payload: TokenPayload = Depends(get_token_payload),
) -> User:
    """Load the user identified by the bearer access token.

    Raises:
        UnauthorizedError: If the user no longer exists
    """
    user_service = UserService()
    user = await user_service.get_by_id(payload.id)

    if user is None:
        raise UnauthorizedError("User not found")

    return user
