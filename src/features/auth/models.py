"""Authentication models (refresh token persistence)."""

from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import Boolean, ForeignKey, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, UTCDateTime


class RevocationReason(StrEnum):
    """Why a refresh token stopped being usable."""

    ROTATED = "rotated"
    LOGOUT = "logout"
    LOGOUT_ALL = "logout_all"
    SECURITY = "security"
    REUSE_DETECTED = "reuse_detected"


class RefreshToken(Base):
    """Refresh token for JWT token rotation.

    Only the SHA-256 digest of the opaque token value is stored. Rows are never
    deleted: a rotated or revoked token stays behind with its reason and, for
    rotations, a link to the token that replaced it.
    """

    __tablename__ = "refresh_tokens"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Token data
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    access_token_jti: Mapped[str | None] = mapped_column(String(36), nullable=True)
    issued_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)

    # Revocation
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false(), index=True)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    revoked_reason: Mapped[str | None] = mapped_column(String(50), nullable=True)
    replaced_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("refresh_tokens.id", ondelete="SET NULL"), nullable=True
    )

    # Client metadata
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)  # IPv6 max length is 45
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Expiry is exclusive: a token is expired from its expires_at instant on."""
        return (now or datetime.now(UTC)) >= self.expires_at
