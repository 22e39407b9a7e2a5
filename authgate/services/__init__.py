"""Services package exports."""

from authgate.services.access_guard import AccessGuard, GuardState, extract_bearer
from authgate.services.email_service import EmailService
from authgate.services.logging_service import configure_logging, get_logger
from authgate.services.password_service import PasswordService
from authgate.services.reset_token_service import ResetTokenService
from authgate.services.role_gate import allow
from authgate.services.token_service import TokenService
from authgate.services.user_service import UserService

__all__ = [
    "AccessGuard",
    "EmailService",
    "GuardState",
    "PasswordService",
    "ResetTokenService",
    "TokenService",
    "UserService",
    "allow",
    "configure_logging",
    "extract_bearer",
    "get_logger",
]
