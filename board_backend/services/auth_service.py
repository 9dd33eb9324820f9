"""Authentication service: credential checks and the refresh token lifecycle."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog

from board_backend.config import get_settings
from board_backend.errors import (
    InternalError,
    NotFoundError,
    TokenInvalidError,
    UnauthorizedError,
)
from board_backend.models.auth import LoginResponse, TokenPairResponse, TokenPayload
from board_backend.models.user import User
from board_backend.services.password_hasher import verify_password
from board_backend.services.refresh_token_store import RefreshTokenStore
from board_backend.services.token_issuer import IssuedToken, TokenIssuer
from board_backend.services.user_service import UserService
from board_backend.services.visitor_service import VisitorService, schedule_visit

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
TOKEN_PROCESSING_FAILED = "Problem with token processing"


class AuthService:
    """Stateless orchestrator over the user store, refresh token store,
    token issuer and visitor counter.

    Refresh token states: ISSUED -> VALID | EXPIRED | REVOKED. VALID is
    derived (not revoked and not past ``expires_at``). A token is revoked at
    most once, atomically, as the first step of a successful refresh.
    """

    def __init__(
        self,
        user_service: Optional[UserService] = None,
        refresh_tokens: Optional[RefreshTokenStore] = None,
        issuer: Optional[TokenIssuer] = None,
        visitor_service: Optional[VisitorService] = None,
    ):
        self.settings = get_settings()
        self.user_service = user_service or UserService()
        self.refresh_tokens = refresh_tokens or RefreshTokenStore()
        self.issuer = issuer or TokenIssuer(
            self.settings.jwt_secret, self.settings.jwt_algorithm
        )
        self.visitor_service = visitor_service or VisitorService()
        self.access_ttl = timedelta(minutes=self.settings.access_token_expire_minutes)
        self.refresh_ttl = timedelta(days=self.settings.refresh_token_expire_days)

    async def validate_user(self, email: str, password: str) -> User:
        """Check an email/password pair.

        Unknown emails and lookup errors are reported exactly like a wrong
        password so callers cannot tell which emails are registered.

        Args:
            email: Email presented at login
            password: Plain-text password presented at login

        Returns:
            The matching User

        Raises:
            UnauthorizedError: On any lookup failure or password mismatch
        """
        try:
            user = await self.user_service.get_by_email(email)
        except NotFoundError:
            logger.info("login_rejected", reason="unknown_email")
            raise UnauthorizedError(INVALID_CREDENTIALS)
        except Exception as e:
            logger.error("login_user_lookup_failed", error=str(e))
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if not await verify_password(password, user.password_hash):
            logger.info("login_rejected", reason="password_mismatch", user_id=user.id)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        return user

    async def login(self, user: User) -> LoginResponse:
        """Issue a token pair for an already validated user.

        Args:
            user: User returned by validate_user

        Returns:
            LoginResponse with both tokens and profile basics

        Raises:
            InternalError: If the user can no longer be loaded by id, or
                issuing and persisting the refresh token fails
        """
        payload = _payload_for(user)

        try:
            user_info = await self.user_service.get_by_id(payload.id)
        except Exception as e:
            logger.error("login_user_reload_failed", user_id=payload.id, error=str(e))
            raise InternalError()

        if user_info is None:
            logger.error("login_user_mismatch", user_id=payload.id)
            raise InternalError()

        try:
            refresh_token = await self._issue_refresh_token(payload)
            access_token = self.issuer.issue(payload, self.access_ttl)
            schedule_visit(self.visitor_service, user.email)
        except Exception as e:
            logger.error("login_token_issue_failed", user_id=payload.id, error=str(e), exc_info=True)
            raise InternalError(TOKEN_PROCESSING_FAILED)

        logger.info("user_logged_in", user_id=user.id)

        return LoginResponse(
            access_token=access_token.token,
            refresh_token=refresh_token.token,
            name=user_info.name,
            nickname=user_info.nickname,
            email=user_info.email,
        )

    async def refresh(self, token: Optional[str]) -> TokenPairResponse:
        """Rotate a refresh token into a new access/refresh pair.

        Args:
            token: Refresh token presented by the client (may be missing)

        Returns:
            TokenPairResponse with the new tokens

        Raises:
            UnauthorizedError: If the token is missing, unknown, revoked,
                expired, or was consumed by a concurrent refresh
            InternalError: For any other failure
        """
        if not token:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        try:
            stored = await self.refresh_tokens.find_valid(token)
            if stored is None:
                logger.warning("refresh_rejected", reason="unknown_token")
                raise UnauthorizedError(INVALID_REFRESH_TOKEN)
            if stored.revoked:
                logger.warning("refresh_rejected", reason="revoked", token_id=stored.id)
                raise UnauthorizedError(INVALID_REFRESH_TOKEN)
            if datetime.now(timezone.utc) > stored.expires_at:
                logger.warning("refresh_rejected", reason="expired", token_id=stored.id)
                raise UnauthorizedError(INVALID_REFRESH_TOKEN)

            if not await self.refresh_tokens.consume(stored.id):
                logger.warning("refresh_rejected", reason="already_consumed", token_id=stored.id)
                raise UnauthorizedError(INVALID_REFRESH_TOKEN)

            user = await self.user_service.get_by_email(stored.user_email)
            if user.created_at > stored.created_at:
                # Issued to an earlier account that has since been removed
                logger.warning("refresh_rejected", reason="owner_replaced", token_id=stored.id)
                raise UnauthorizedError(INVALID_REFRESH_TOKEN)

            payload = _payload_for(user)

            new_refresh = await self._issue_refresh_token(payload)
            access_token = self.issuer.issue(payload, self.access_ttl)
            schedule_visit(self.visitor_service, user.email)
        except UnauthorizedError:
            raise
        except Exception as e:
            logger.error("refresh_token_processing_failed", error=str(e), exc_info=True)
            raise InternalError(TOKEN_PROCESSING_FAILED)

        logger.info("refresh_token_rotated", user_id=user.id, old_token_id=stored.id)

        return TokenPairResponse(
            access_token=access_token.token,
            refresh_token=new_refresh.token,
        )

    async def logout(self, token: Optional[str]) -> None:
        """Revoke a refresh token. Unknown or already revoked tokens are ignored."""
        if not token:
            return

        stored = await self.refresh_tokens.find_valid(token)
        if stored is None:
            return

        await self.refresh_tokens.revoke(stored.id)
        logger.info("user_logged_out", user_email=stored.user_email)

    def validate_access_token(self, token: str) -> bool:
        """Check signature and expiry of an access token.

        Access tokens are stateless: revoking refresh tokens does not affect
        access tokens already issued.

        Returns:
            True if the token verifies, False for any verification failure
        """
        try:
            self.issuer.verify(token)
        except TokenInvalidError as e:
            logger.debug("access_token_rejected", error=str(e))
            return False
        return True

    def decode_access_token(self, token: str) -> TokenPayload:
        """Verify an access token and return its identity claims.

        Raises:
            UnauthorizedError: If the token does not verify
        """
        try:
            return self.issuer.verify(token)
        except TokenInvalidError:
            raise UnauthorizedError("Invalid or expired access token")

    async def _issue_refresh_token(self, payload: TokenPayload) -> IssuedToken:
        # The stored expiry is the token's own exp claim
        issued = self.issuer.issue(payload, self.refresh_ttl)
        await self.refresh_tokens.save(payload.email, issued.token, issued.expires_at)
        return issued


def _payload_for(user: User) -> TokenPayload:
    return TokenPayload(id=user.id, email=user.email, role=user.role)
