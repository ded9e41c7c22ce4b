from datetime import datetime

from pydantic import BaseModel, Field

from bookcatalog.utils import now


class User(BaseModel):
    """Registered identity with credentials."""

    username: str
    password_hash: str  # bcrypt hash
    created_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation)."""

    username: str = Field(..., description="Username")
    created_at: datetime = Field(..., description="Registration time")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(username=user.username, created_at=user.created_at)
