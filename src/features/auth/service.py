"""Authentication service layer."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import settings
from src.features.user.models import User

from .exceptions import (
    InvalidTokenException,
    RefreshTokenExpiredException,
    RefreshTokenNotFoundException,
    RefreshTokenRevokedException,
)
from .jwt_utils import AccessTokenClaims, create_access_token, decode_access_token, generate_refresh_token_value
from .models import RefreshToken, RevocationReason
from .schemas import TokenResponse
from .store import RefreshTokenStore

logger = logging.getLogger(__name__)

MAX_FAILED_LOGIN_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=30)


class AuthService:
    """Service for JWT authentication and token management."""

    @staticmethod
    async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
        """Authenticate a user with email and password.

        Args:
            session: Database session
            email: Email address
            password: Plain text password

        Returns:
            User object if authentication successful, None otherwise

        """
        stmt = select(User).where(User.email == email.lower())
        result = await session.execute(stmt)
        user = result.scalar_one_or_none()

        if not user:
            return None

        if user.is_locked():
            logger.warning(f"Login attempt for locked account: user {user.id}")
            return None

        if not user.is_active:
            logger.warning(f"Login attempt for inactive account: user {user.id}")
            return None

        if user.locked_until is not None:
            # Lockout window has passed
            user.locked_until = None
            user.failed_login_attempts = 0

        if not user.verify_password(password):
            user.failed_login_attempts += 1

            if user.failed_login_attempts >= MAX_FAILED_LOGIN_ATTEMPTS:
                # Status stays ACTIVE: the lock lifts when locked_until passes
                user.locked_until = datetime.now(UTC) + LOCKOUT_DURATION
                logger.warning(f"Account locked due to failed attempts: user {user.id}")

            return None

        user.failed_login_attempts = 0
        user.last_login_at = datetime.now(UTC)
        user.locked_until = None
        user.is_logged_in = True

        return user

    @staticmethod
    async def _issue(
        session: AsyncSession, user: User, ip_address: str | None = None, user_agent: str | None = None
    ) -> tuple[TokenResponse, RefreshToken]:
        access_token, claims = create_access_token(user.id, user.email, user.role_set)

        refresh_token_value = generate_refresh_token_value()
        stored = await RefreshTokenStore.create(
            session,
            user.id,
            refresh_token_value,
            expires_at=datetime.now(UTC) + timedelta(days=settings.refresh_token_expire_days),
            access_token_jti=claims.jti,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        tokens = TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token_value,
            expires_in=settings.access_token_expire_minutes * 60,
            user_id=user.id,
        )
        return tokens, stored

    @staticmethod
    async def issue_tokens(
        session: AsyncSession, user: User, ip_address: str | None = None, user_agent: str | None = None
    ) -> TokenResponse:
        """Create access and refresh tokens for an authenticated user.

        Args:
            session: Database session
            user: Authenticated user
            ip_address: Requester's IP address (optional)
            user_agent: Requester's User-Agent header (optional)

        Returns:
            TokenResponse with access token, refresh token, and expiration time

        """
        tokens, stored = await AuthService._issue(session, user, ip_address, user_agent)
        logger.info(f"Issued refresh token {stored.id} for user {user.id}")
        return tokens

    @staticmethod
    def verify_access_token(token: str, now: datetime | None = None) -> AccessTokenClaims:
        """Verify a bearer access token and return its claims."""
        return decode_access_token(token, now=now)

    @staticmethod
    async def rotate_tokens(
        session: AsyncSession, refresh_token: str, user_id: int, now: datetime | None = None
    ) -> TokenResponse:
        """Exchange a refresh token for a new access/refresh pair.

        The presented token is revoked with reason "rotated" and linked to its
        successor. Revocation is a conditional update, so of two concurrent rotations
        of the same token only one succeeds.

        Raises:
            RefreshTokenNotFoundException: Unknown token, or issued to another user
            RefreshTokenRevokedException: Token already rotated or revoked
            RefreshTokenExpiredException: Token past its expiry
            InvalidTokenException: Owner no longer active

        """
        stored = await RefreshTokenStore.find_by_value(session, refresh_token)

        if stored is None or stored.user_id != user_id:
            logger.warning(f"Refresh attempt with unknown token for user {user_id}")
            raise RefreshTokenNotFoundException()

        if stored.revoked:
            logger.warning(
                f"Refresh attempt with revoked token {stored.id} for user {stored.user_id} "
                f"(reason: {stored.revoked_reason})"
            )
            if settings.refresh_token_reuse_detection:
                count = await RefreshTokenStore.revoke_descendants(session, stored, RevocationReason.REUSE_DETECTED)
                logger.warning(f"Reuse detected on refresh token {stored.id}: revoked {count} descendant token(s)")
            raise RefreshTokenRevokedException()

        if stored.is_expired(now):
            raise RefreshTokenExpiredException()

        user = await session.get(User, stored.user_id)
        if user is None or not user.is_active or user.is_locked():
            raise InvalidTokenException()

        if not await RefreshTokenStore.mark_revoked(session, stored.id, RevocationReason.ROTATED):
            logger.warning(f"Concurrent rotation lost for refresh token {stored.id}")
            raise RefreshTokenRevokedException()

        tokens, successor = await AuthService._issue(session, user, stored.ip_address, stored.user_agent)
        stored.replaced_by_id = successor.id
        await session.flush()

        logger.info(f"Rotated refresh token {stored.id} -> {successor.id} for user {user.id}")
        return tokens

    @staticmethod
    async def revoke_refresh_token(
        session: AsyncSession,
        refresh_token: str,
        reason: RevocationReason = RevocationReason.LOGOUT,
        user_id: int | None = None,
    ) -> bool:
        """Revoke a refresh token (logout). Returns False if already revoked or not found."""
        return await RefreshTokenStore.revoke(session, refresh_token, reason, user_id=user_id)

    @staticmethod
    async def revoke_all_user_tokens(session: AsyncSession, user_id: int, reason: RevocationReason) -> int:
        """Revoke every refresh token a user holds (sign out everywhere)."""
        count = await RefreshTokenStore.revoke_all_for_user(session, user_id, reason)
        logger.info(f"Revoked {count} refresh token(s) for user {user_id}: {reason.value}")
        return count

    @staticmethod
    async def list_sessions(session: AsyncSession, user_id: int) -> list[RefreshToken]:
        """List a user's active sessions."""
        return await RefreshTokenStore.list_active_for_user(session, user_id)
