"""Authentication router (JWT token management endpoints)."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import settings
from src.database.dependencies import get_db_session
from src.features.user.models import User
from src.shared.rate_limit import limiter

from .dependencies import get_current_user
from .exceptions import InvalidCredentialsException, RefreshTokenRevokedException
from .models import RevocationReason
from .schemas import (
    LogoutRequest,
    RefreshTokenRequest,
    RevokedSessionsResponse,
    SessionListResponse,
    SessionResponse,
    TokenResponse,
    UserLoginRequest,
)
from .service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.rate_limit_auth)
async def login(data: UserLoginRequest, request: Request, session: AsyncSession = Depends(get_db_session)):
    """Login and get JWT tokens.

    - **email**: Email address
    - **password**: Password

    Returns access_token and refresh_token.
    """
    user = await AuthService.authenticate_user(session, data.email, data.password)

    if not user:
        # Persist failed-attempt counters before rejecting
        await session.commit()
        raise InvalidCredentialsException()

    # Get client info for audit
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")

    tokens = await AuthService.issue_tokens(session, user, ip_address, user_agent)
    await session.commit()

    logger.info(f"User logged in: {user.id}")
    return tokens


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit(settings.rate_limit_auth)
async def refresh_token(data: RefreshTokenRequest, request: Request, session: AsyncSession = Depends(get_db_session)):
    """Rotate a refresh token.

    - **refresh_token**: Valid refresh token
    - **user_id**: Id of the user the token was issued to

    Returns a new access_token and refresh_token. The presented refresh token can not be used again.
    """
    try:
        tokens = await AuthService.rotate_tokens(session, data.refresh_token, data.user_id)
    except RefreshTokenRevokedException:
        # Keep any reuse-detection revocations made before rejecting
        await session.commit()
        raise

    await session.commit()
    return tokens


@router.post("/logout")
async def logout(
    data: LogoutRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Logout and revoke refresh token.

    - **refresh_token**: Refresh token to revoke
    """
    revoked = await AuthService.revoke_refresh_token(
        session, data.refresh_token, RevocationReason.LOGOUT, user_id=current_user.id
    )

    if revoked:
        current_user.is_logged_in = False
        await session.commit()
        logger.info(f"User logged out: {current_user.id}")
        return {"message": "Successfully logged out"}
    else:
        return {"message": "Token already revoked or not found"}


@router.post("/logout-all", response_model=RevokedSessionsResponse)
async def logout_all(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Revoke every refresh token of the current user (sign out on all devices)."""
    count = await AuthService.revoke_all_user_tokens(session, current_user.id, RevocationReason.LOGOUT_ALL)
    current_user.is_logged_in = False
    await session.commit()
    return RevokedSessionsResponse(revoked=count)


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List the current user's active sessions."""
    tokens = await AuthService.list_sessions(session, current_user.id)
    return SessionListResponse(sessions=[SessionResponse.model_validate(t) for t in tokens], total=len(tokens))
