"""User domain models."""

import logging
from datetime import UTC, datetime
from enum import StrEnum

from pwdlib import PasswordHash
from sqlalchemy import Boolean, Enum, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column, validates

from src.database.base import Base, StringList, TimestampMixin, UTCDateTime

from .roles import Capability, Role, capabilities_for, parse_roles

logger = logging.getLogger(__name__)


class UserStatus(StrEnum):
    """User account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    LOCKED = "locked"


pwd_hasher = PasswordHash.recommended()


class User(Base, TimestampMixin):
    """User model for authentication and authorization.

    A user owns zero or more refresh tokens, one per signed-in session. Revoked
    tokens are kept as history.
    """

    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Authentication
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    # Authorization
    roles: Mapped[list[str]] = mapped_column(
        StringList(),
        nullable=False,
        default=lambda: [Role.PROSPECT.value],
    )

    # Status
    status: Mapped[str] = mapped_column(
        Enum(UserStatus, native_enum=False, length=50, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserStatus.ACTIVE.value,
        server_default=UserStatus.ACTIVE.value,
        index=True,
    )
    is_logged_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    # Audit
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    failed_login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    locked_until: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        """Computed property: user is active if status is ACTIVE."""
        return self.status == UserStatus.ACTIVE.value

    @validates("roles")
    def validate_roles(self, key: str, value: list[str]) -> list[str]:
        """Reject unknown role names on write."""
        return sorted(role.value for role in parse_roles(value))

    @property
    def role_set(self) -> frozenset[Role]:
        """Stored role names as a typed role set.

        Names that are not a known role (rows written outside the ORM) grant nothing.
        """
        granted = set()
        for name in self.roles or []:
            try:
                granted.add(Role(name))
            except ValueError:
                logger.warning(f"Ignoring unknown role {name!r} on user {self.id}")
        return frozenset(granted)

    @property
    def capabilities(self) -> frozenset[Capability]:
        return capabilities_for(self.role_set)

    def verify_password(self, plain_password: str) -> bool:
        """Verify a password against the hash using Argon2.

        Salt is automatically extracted from the hash by pwdlib.
        """
        return pwd_hasher.verify(plain_password, self.hashed_password)

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using Argon2.

        Salt is automatically generated and embedded in the returned hash.
        """
        return pwd_hasher.hash(password)

    def is_locked(self) -> bool:
        """Check if account is locked.

        LOCKED status is an administrative lock with no end. Failed logins only set
        ``locked_until``, which lifts by itself once it has passed.
        """
        if self.status == UserStatus.LOCKED.value:
            return True
        locked_until = self.locked_until
        if locked_until:
            if locked_until.tzinfo is None:
                locked_until = locked_until.replace(tzinfo=UTC)
            if locked_until > datetime.now(UTC):
                return True
        return False
