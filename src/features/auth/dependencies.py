"""Authentication dependencies for FastAPI."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.dependencies import get_db_session
from src.features.user.models import User
from src.features.user.roles import Capability, Role

from .exceptions import (
    InsufficientCapabilityException,
    InsufficientRoleException,
    InvalidTokenException,
    UserInactiveException,
    UserLockedException,
)
from .jwt_utils import AccessTokenClaims, decode_access_token
from .permissions import any_role, has_capability, is_allowed

# auto_error=False so a missing header is the same 401 as a bad token
security = HTTPBearer(auto_error=False)


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AccessTokenClaims:
    """Verify the bearer access token and return its claims.

    Raises:
        InvalidTokenException: If the header is missing or the token is invalid or expired

    """
    if credentials is None:
        raise InvalidTokenException()

    return decode_access_token(credentials.credentials)


async def get_current_user(
    claims: AccessTokenClaims = Depends(get_current_claims),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        claims: Verified access token claims
        session: Database session

    Returns:
        User object

    Raises:
        InvalidTokenException: If the token's user no longer exists
        UserInactiveException: If the account is inactive
        UserLockedException: If the account is locked

    """
    user = await session.get(User, claims.user_id)

    if user is None:
        raise InvalidTokenException()

    if user.is_locked():
        raise UserLockedException()

    if not user.is_active:
        raise UserInactiveException()

    return user


def require_role(*required_roles: Role):
    """Dependency factory to require specific roles.

    Usage:
        # For single role
        Depends(require_role(Role.SUPER_ADMIN))

        # For multiple roles (OR logic - user needs ANY of these)
        Depends(require_role(Role.ADMIN, Role.SUPER_ADMIN))
    """
    predicate = any_role(*required_roles)

    async def role_checker(claims: AccessTokenClaims = Depends(get_current_claims)) -> AccessTokenClaims:
        if not is_allowed(claims, predicate):
            raise InsufficientRoleException([r.value for r in required_roles])
        return claims

    return role_checker


def require_capability(capability: Capability):
    """Dependency factory to require a capability granted by any of the caller's roles.

    Usage:
        Depends(require_capability(Capability.MANAGE_SESSIONS))
    """
    predicate = has_capability(capability)

    async def capability_checker(claims: AccessTokenClaims = Depends(get_current_claims)) -> AccessTokenClaims:
        if not is_allowed(claims, predicate):
            raise InsufficientCapabilityException(capability.value)
        return claims

    return capability_checker
