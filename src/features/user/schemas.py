"""User schemas (DTOs)."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, field_validator

from .models import UserStatus
from .roles import Capability, Role


# Response schemas
class UserResponse(BaseModel):
    """User response."""

    id: int
    email: EmailStr
    first_name: str
    last_name: str
    full_name: str
    roles: list[Role]
    capabilities: list[Capability]
    status: UserStatus
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("roles", mode="before")
    @classmethod
    def known_roles(cls, value):
        """Known roles only, in stable order."""
        known = set(Role)
        return sorted(role for role in value if role in known)

    @field_validator("capabilities", mode="before")
    @classmethod
    def sort_values(cls, value):
        """Stable ordering for capabilities."""
        return sorted(value)
