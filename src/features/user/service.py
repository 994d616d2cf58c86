"""User service layer."""

from sqlalchemy.ext.asyncio import AsyncSession

from .exceptions import UserNotFound
from .models import User


class UserService:
    """Service for user operations."""

    @staticmethod
    async def get_user(session: AsyncSession, user_id: int) -> User | None:
        """Get user by ID."""
        return await session.get(User, user_id)

    @staticmethod
    async def get_user_or_404(session: AsyncSession, user_id: int) -> User:
        """Get user by ID.

        Raises:
            UserNotFound: If no user has this ID

        """
        user = await UserService.get_user(session, user_id)
        if user is None:
            raise UserNotFound()
        return user
