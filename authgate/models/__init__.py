"""Models package exports."""

from authgate.models.auth import (
    AuthContext,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    ResetToken,
    SignupRequest,
    TokenClaims,
    UpdatePasswordRequest,
)
from authgate.models.user import Role, User, UserRecord, UserSummary

__all__ = [
    "AuthContext",
    "ForgotPasswordRequest",
    "LoginRequest",
    "ResetPasswordRequest",
    "ResetToken",
    "Role",
    "SignupRequest",
    "TokenClaims",
    "UpdatePasswordRequest",
    "User",
    "UserRecord",
    "UserSummary",
]
