"""Auth request, response and token models with validation.

Request bodies use the camelCase field names of the public API
(``passwordConfirm``, ``passwordCurrent``); attributes are snake_case.
"""

import re
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from authgate.models.user import Role, User, UserSummary

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Please provide a valid email")
    return v


class _NewPassword(BaseModel):
    """A new password with its confirmation."""

    model_config = ConfigDict(populate_by_name=True)

    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    password_confirm: str = Field(..., alias="passwordConfirm")

    @model_validator(mode="after")
    def passwords_match(self):
        """Ensure passwordConfirm repeats password exactly."""
        if self.password != self.password_confirm:
            raise ValueError("Passwords are not the same")
        return self


class SignupRequest(_NewPassword):
    """New account details.

    Attributes:
        name: Display name (non-blank, max 100 chars)
        email: Unique email address, stored lowercased
        password: Plain-text password (min 8 chars)
        password_confirm: Must equal password
        role: Requested role, defaults to ``user``
    """

    name: str = Field(..., max_length=100)
    email: str
    role: Role = Role.USER

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Please tell us your name")
        return stripped

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(BaseModel):
    """Login credentials.

    Both fields are optional at the schema level so the handler can answer a
    missing field with its own 400 message.
    """

    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    """Request a password reset email."""

    email: str

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.strip().lower()


class ResetPasswordRequest(_NewPassword):
    """New password submitted together with a reset token (in the path)."""


class UpdatePasswordRequest(_NewPassword):
    """Password change for a logged-in user."""

    password_current: str = Field(..., alias="passwordCurrent")


class TokenClaims(BaseModel):
    """Verified contents of a session token."""

    user_id: UUID
    issued_at: datetime
    expires_at: datetime


class ResetToken(BaseModel):
    """A freshly generated password reset token.

    ``plain_token`` goes to the user by email only; ``hashed_token`` and
    ``expires_at`` are what gets stored.
    """

    plain_token: str
    hashed_token: str
    expires_at: datetime


class AuthContext(BaseModel):
    """Result of a successful Access Guard pass."""

    user: User
    claims: TokenClaims


class UserData(BaseModel):
    user: UserSummary


class UserListData(BaseModel):
    users: list[UserSummary]


class TokenResponse(BaseModel):
    """Login response."""

    status: Literal["success"] = "success"
    token: str


class AuthResponse(TokenResponse):
    """Token response that also carries the sanitized user."""

    data: UserData


class UserResponse(BaseModel):
    status: Literal["success"] = "success"
    data: UserData


class UserListResponse(BaseModel):
    status: Literal["success"] = "success"
    results: int
    data: UserListData


class MessageResponse(BaseModel):
    status: Literal["success"] = "success"
    message: str
