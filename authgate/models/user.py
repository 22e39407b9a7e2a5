"""User models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Role(str, Enum):
    """Roles a user can hold."""

    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


class User(BaseModel):
    """A registered user. Carries no credential material."""

    id: UUID
    name: str
    email: str
    role: Role = Role.USER
    password_changed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    def changed_password_after(self, issued_at: datetime) -> bool:
        """Return True if the password changed after a token was issued.

        Compared at one-second resolution, matching the JWT ``iat`` claim.
        """
        if self.password_changed_at is None:
            return False
        changed = int(self.password_changed_at.timestamp())
        return int(issued_at.timestamp()) < changed


class UserRecord(User):
    """Full stored user row, including secrets. Never returned to clients."""

    password_hash: str
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None

    @model_validator(mode="after")
    def reset_fields_paired(self) -> "UserRecord":
        """Reset token hash and expiry are either both set or both absent."""
        if (self.password_reset_token is None) != (self.password_reset_expires is None):
            raise ValueError(
                "password_reset_token and password_reset_expires must be set together"
            )
        return self

    def to_user(self) -> User:
        """Strip credential fields."""
        return User.model_validate(self.model_dump(include=set(User.model_fields)))


class UserSummary(BaseModel):
    """Sanitized user representation for API responses."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    name: str
    email: str
    role: Role
    password_changed_at: Optional[datetime] = Field(
        default=None, serialization_alias="passwordChangedAt"
    )
    created_at: datetime = Field(serialization_alias="createdAt")

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            password_changed_at=user.password_changed_at,
            created_at=user.created_at,
        )
