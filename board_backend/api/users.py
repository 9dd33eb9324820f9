"""User account API endpoints."""

from fastapi import APIRouter, Depends, Response, status
import structlog

from board_backend.api.dependencies import get_current_user
from board_backend.models.auth import SignUpRequest, UpdatePasswordRequest, UserSummary
from board_backend.models.user import User
from board_backend.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _user_summary(user: User) -> UserSummary:
    """Convert a User model to a UserSummary response."""
    return UserSummary(
        id=user.id,
        email=user.email,
        name=user.name,
        nickname=user.nickname,
        role=user.role,
        created_at=user.created_at,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def sign_up(request: SignUpRequest) -> UserSummary:
    """Register a new account.

    Raises:
        ConflictError: If the email or nickname is already taken (409)
        BadRequestError: If bcrypt cannot hash the password (400)
    """
    user_service = UserService()
    user = await user_service.create_user(
        email=request.email,
        password=request.password,
        name=request.name,
        nickname=request.nickname,
    )
    return _user_summary(user)


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> UserSummary:
    """Get the authenticated user's profile."""
    return _user_summary(current_user)


@router.patch("/me/password")
async def update_password(
    request: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
) -> UserSummary:
    """Change the authenticated user's password."""
    user_service = UserService()
    user = await user_service.update_password(current_user.email, request.password)
    return _user_summary(user)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def remove_account(current_user: User = Depends(get_current_user)) -> Response:
    """Delete the authenticated user's account."""
    user_service = UserService()
    await user_service.remove_account(current_user.email)
    logger.info("account_removed", user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
