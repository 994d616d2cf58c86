"""Authentication schemas (DTOs)."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


# Request schemas
class UserLoginRequest(BaseModel):
    """Login request.

    Note: Uses email-validator library via Pydantic's EmailStr for RFC 5322 compliant email validation.
    """

    email: EmailStr = Field(..., description="Email address (validated via email-validator)")
    password: str = Field(..., min_length=1, max_length=256)


class RefreshTokenRequest(BaseModel):
    """Refresh token rotation request."""

    refresh_token: str = Field(..., min_length=1)
    user_id: int = Field(..., ge=1, description="Id of the user the refresh token was issued to")


class LogoutRequest(BaseModel):
    """Logout request (revokes a single refresh token)."""

    refresh_token: str = Field(..., min_length=1)


# Response schemas
class TokenResponse(BaseModel):
    """JWT token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user_id: int


class SessionResponse(BaseModel):
    """An active sign-in session (refresh token metadata, never the token itself)."""

    id: int
    issued_at: datetime
    expires_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None

    model_config = {"from_attributes": True}


class SessionListResponse(BaseModel):
    """Active sessions of a user."""

    sessions: list[SessionResponse]
    total: int


class RevokedSessionsResponse(BaseModel):
    """Result of a bulk revocation."""

    revoked: int
