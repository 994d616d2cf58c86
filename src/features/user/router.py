"""User router (profile and session administration endpoints)."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.dependencies import get_db_session
from src.features.auth.dependencies import get_current_claims, get_current_user, require_capability
from src.features.auth.jwt_utils import AccessTokenClaims
from src.features.auth.models import RevocationReason
from src.features.auth.schemas import RevokedSessionsResponse, SessionListResponse, SessionResponse
from src.features.auth.service import AuthService

from .models import User
from .roles import Capability
from .schemas import UserResponse
from .service import UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information, including the capabilities granted by their roles."""
    return UserResponse.model_validate(current_user)


# Admin endpoints
@router.get(
    "/{user_id}", response_model=UserResponse, dependencies=[Depends(require_capability(Capability.MANAGE_USERS))]
)
async def get_user(user_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get user by ID (user managers only)."""
    user = await UserService.get_user_or_404(session, user_id)
    return UserResponse.model_validate(user)


@router.get(
    "/{user_id}/sessions",
    response_model=SessionListResponse,
    dependencies=[Depends(require_capability(Capability.MANAGE_SESSIONS))],
)
async def list_user_sessions(user_id: int, session: AsyncSession = Depends(get_db_session)):
    """List a user's active sessions (admin only)."""
    await UserService.get_user_or_404(session, user_id)
    tokens = await AuthService.list_sessions(session, user_id)
    return SessionListResponse(sessions=[SessionResponse.model_validate(t) for t in tokens], total=len(tokens))


@router.post(
    "/{user_id}/revoke-sessions",
    response_model=RevokedSessionsResponse,
    dependencies=[Depends(require_capability(Capability.MANAGE_SESSIONS))],
)
async def revoke_user_sessions(
    user_id: int,
    claims: AccessTokenClaims = Depends(get_current_claims),
    session: AsyncSession = Depends(get_db_session),
):
    """Revoke every refresh token of a user (admin only).

    Access tokens already issued stay valid until they expire.
    """
    user = await UserService.get_user_or_404(session, user_id)
    count = await AuthService.revoke_all_user_tokens(session, user.id, RevocationReason.SECURITY)
    user.is_logged_in = False
    await session.commit()

    logger.info(f"Sessions of user {user.id} revoked by admin {claims.user_id}")
    return RevokedSessionsResponse(revoked=count)
