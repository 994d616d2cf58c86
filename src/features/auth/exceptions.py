"""Authentication exceptions.

Every 401 carries the same detail so a client cannot tell a bad signature from an
expired, unknown or revoked token. The subclasses stay distinct for callers and logs.
"""

from fastapi import HTTPException, status

UNAUTHORIZED_DETAIL = "Could not validate credentials"


class AuthenticationException(HTTPException):
    """Base authentication exception."""

    def __init__(self, detail: str = UNAUTHORIZED_DETAIL):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidCredentialsException(AuthenticationException):
    """Raised when the user's identity cannot be established at login."""

    def __init__(self):
        super().__init__(detail="Incorrect email or password")


class InvalidTokenException(AuthenticationException):
    """Raised when a token is malformed, has a bad signature or wrong claims."""

    def __init__(self):
        super().__init__()


class TokenExpiredException(InvalidTokenException):
    """Raised when an access token is at or past its expiry."""


class RefreshTokenNotFoundException(InvalidTokenException):
    """Raised when a refresh token is unknown or belongs to another user."""


class RefreshTokenRevokedException(InvalidTokenException):
    """Raised when a refresh token was already rotated or revoked."""


class RefreshTokenExpiredException(InvalidTokenException):
    """Raised when a refresh token has expired."""


class UserInactiveException(HTTPException):
    """Raised when user account is inactive."""

    def __init__(self):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")


class UserLockedException(HTTPException):
    """Raised when user account is locked."""

    def __init__(self):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail="User account is locked")


class PermissionDeniedException(HTTPException):
    """Raised when the caller's roles do not satisfy a route's requirement."""

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InsufficientRoleException(PermissionDeniedException):
    """Raised when user lacks required role."""

    def __init__(self, required_roles: list[str]):
        roles_str = ", ".join(required_roles)
        super().__init__(detail=f"User does not have required role(s): {roles_str}")


class InsufficientCapabilityException(PermissionDeniedException):
    """Raised when none of the user's roles grants a capability."""

    def __init__(self, capability: str):
        super().__init__(detail=f"User does not have required capability: {capability}")
