"""JWT utilities for authentication.

Access tokens are signed JWTs verified statelessly. Refresh tokens are opaque random
strings; only their SHA-256 digest is persisted.
"""

import hashlib
import secrets
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any, Literal
from uuid import uuid4

import jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from src.config.settings import settings
from src.features.user.roles import Role

from .exceptions import InvalidTokenException, TokenExpiredException

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_BYTES = 64


class AccessTokenClaims(BaseModel):
    """Decoded access token claims.

    Validated when a token is decoded, so an unknown role name or a missing claim
    makes the whole token invalid.
    """

    model_config = ConfigDict(frozen=True)

    sub: int
    email: str
    roles: frozenset[Role]
    jti: str
    iat: datetime
    nbf: datetime | None = None
    exp: datetime
    type: Literal["access"]

    @property
    def user_id(self) -> int:
        return self.sub


def create_access_token(
    user_id: int,
    email: str,
    roles: Iterable[Role],
    *,
    now: datetime | None = None,
    expires_delta: timedelta | None = None,
) -> tuple[str, AccessTokenClaims]:
    """Create a signed JWT access token.

    Args:
        user_id: Subject of the token
        email: User email, carried for display purposes
        roles: Role set granted to the subject
        now: Issue instant (defaults to the current time)
        expires_delta: Optional lifetime (defaults to access_token_expire_minutes)

    Returns:
        Tuple of the encoded token and the claims it carries

    """
    # JWT timestamps have second precision
    issued_at = (now or datetime.now(UTC)).replace(microsecond=0)
    expire = issued_at + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "roles": sorted(role.value for role in roles),
        "jti": str(uuid4()),
        "iat": issued_at,
        "nbf": issued_at,
        "exp": expire,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "type": ACCESS_TOKEN_TYPE,
    }

    encoded_jwt = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    claims = AccessTokenClaims.model_validate(payload)
    return encoded_jwt, claims


def decode_access_token(token: str, *, now: datetime | None = None) -> AccessTokenClaims:
    """Verify an access token and return its claims.

    Signature, issuer and audience are checked by PyJWT. Expiry and
    not-before are checked here against ``now`` so the clock can be injected; a token
    is expired from its ``exp`` instant on and unusable before its ``nbf`` instant.

    Raises:
        InvalidTokenException: If the token is malformed, forged, of the wrong type or
            not yet valid
        TokenExpiredException: If ``now`` is at or past the token's expiry

    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={
                "verify_exp": False,
                "verify_nbf": False,
                "verify_iat": False,
                "require": ["sub", "exp", "iat", "jti"],
            },
        )
        claims = AccessTokenClaims.model_validate(payload)
    except (jwt.InvalidTokenError, ValidationError) as err:
        raise InvalidTokenException() from err

    current = now or datetime.now(UTC)
    if current >= claims.exp:
        raise TokenExpiredException()

    if claims.nbf is not None and current < claims.nbf:
        raise InvalidTokenException()

    return claims


def generate_refresh_token_value() -> str:
    """Generate an opaque refresh token value."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_refresh_token(value: str) -> str:
    """Digest used to store and look up a refresh token."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
