"""Refresh token persistence and revocation.

Every lookup is keyed by the raw token value, hashed before it reaches the
database. Token values are secrets: log row ids, never values.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .jwt_utils import hash_refresh_token
from .models import RefreshToken, RevocationReason

logger = logging.getLogger(__name__)


class RefreshTokenStore:
    """Storage operations for refresh tokens."""

    @staticmethod
    async def create(
        session: AsyncSession,
        user_id: int,
        value: str,
        expires_at: datetime,
        *,
        access_token_jti: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshToken:
        """Persist a new, non-revoked refresh token."""
        token = RefreshToken(
            user_id=user_id,
            token_hash=hash_refresh_token(value),
            access_token_jti=access_token_jti,
            issued_at=datetime.now(UTC),
            expires_at=expires_at,
            revoked=False,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        session.add(token)
        await session.flush()
        return token

    @staticmethod
    async def find_by_value(session: AsyncSession, value: str) -> RefreshToken | None:
        """Find a refresh token in any state."""
        stmt = select(RefreshToken).where(RefreshToken.token_hash == hash_refresh_token(value))
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def find_active(session: AsyncSession, value: str, *, now: datetime | None = None) -> RefreshToken | None:
        """Find a refresh token that is neither revoked nor expired."""
        stmt = select(RefreshToken).where(
            RefreshToken.token_hash == hash_refresh_token(value),
            RefreshToken.revoked.is_(False),
            RefreshToken.expires_at > (now or datetime.now(UTC)),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def is_revoked(session: AsyncSession, value: str) -> bool:
        """True if the value belongs to a stored token that has been revoked."""
        stmt = select(RefreshToken.revoked).where(RefreshToken.token_hash == hash_refresh_token(value))
        result = await session.execute(stmt)
        return bool(result.scalar_one_or_none())

    @staticmethod
    async def mark_revoked(
        session: AsyncSession,
        token_id: int,
        reason: RevocationReason,
    ) -> bool:
        """Revoke a token row if it is still unrevoked.

        The update is conditional on ``revoked = false``, so when two callers race on
        the same row exactly one of them sees a changed row.

        Returns:
            True if this call revoked the token, False if it was already revoked

        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked.is_(False))
            .values(revoked=True, revoked_at=datetime.now(UTC), revoked_reason=reason.value)
            .execution_options(synchronize_session="evaluate")
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    @staticmethod
    async def revoke(
        session: AsyncSession, value: str, reason: RevocationReason, *, user_id: int | None = None
    ) -> bool:
        """Revoke a token by value.

        Idempotent: returns False when the token is unknown or already revoked. When
        ``user_id`` is given, a token owned by someone else is treated as unknown.
        """
        token = await RefreshTokenStore.find_by_value(session, value)
        if token is None or token.revoked:
            return False
        if user_id is not None and token.user_id != user_id:
            return False

        revoked = await RefreshTokenStore.mark_revoked(session, token.id, reason)
        if revoked:
            logger.info(f"Refresh token {token.id} revoked for user {token.user_id}: {reason.value}")
        return revoked

    @staticmethod
    async def revoke_descendants(session: AsyncSession, token: RefreshToken, reason: RevocationReason) -> int:
        """Revoke every still-active token in the rotation chain after ``token``.

        Returns:
            Number of tokens revoked

        """
        count = 0
        seen: set[int] = {token.id}
        next_id = token.replaced_by_id

        while next_id is not None and next_id not in seen:
            seen.add(next_id)
            successor = await session.get(RefreshToken, next_id)
            if successor is None:
                break
            if await RefreshTokenStore.mark_revoked(session, successor.id, reason):
                count += 1
            next_id = successor.replaced_by_id

        return count

    @staticmethod
    async def revoke_all_for_user(session: AsyncSession, user_id: int, reason: RevocationReason) -> int:
        """Revoke every unrevoked token a user owns.

        Returns:
            Number of tokens revoked

        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True, revoked_at=datetime.now(UTC), revoked_reason=reason.value)
            .execution_options(synchronize_session="evaluate")
        )
        result = await session.execute(stmt)
        return result.rowcount

    @staticmethod
    async def list_active_for_user(
        session: AsyncSession, user_id: int, *, now: datetime | None = None
    ) -> list[RefreshToken]:
        """List a user's usable tokens, newest first."""
        stmt = (
            select(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > (now or datetime.now(UTC)),
            )
            .order_by(RefreshToken.issued_at.desc(), RefreshToken.id.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
