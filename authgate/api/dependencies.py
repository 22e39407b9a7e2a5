"""FastAPI dependencies for services, authentication and authorization."""

from datetime import timedelta
from typing import AbstractSet, Awaitable, Callable, Optional

from fastapi import Depends, Header

from authgate.config import get_settings
from authgate.models.auth import AuthContext
from authgate.models.user import Role, User
from authgate.services.access_guard import AccessGuard
from authgate.services.email_service import EmailService
from authgate.services.password_service import PasswordService
from authgate.services.reset_token_service import ResetTokenService
from authgate.services.role_gate import allow
from authgate.services.token_service import TokenService
from authgate.services.user_service import UserService


def get_password_service() -> PasswordService:
    return PasswordService()


def get_user_service(
    password_service: PasswordService = Depends(get_password_service),
) -> UserService:
    return UserService(password_service)


def get_token_service() -> TokenService:
    """Build the session token codec from settings."""
    settings = get_settings()
    return TokenService(
        secret=settings.jwt_secret,
        expires_in=timedelta(minutes=settings.jwt_expires_in_minutes),
    )


def get_reset_token_service() -> ResetTokenService:
    settings = get_settings()
    return ResetTokenService(
        expires_in=timedelta(minutes=settings.password_reset_expires_minutes)
    )


def get_email_service() -> EmailService:
    return EmailService()


def get_public_base_url() -> str:
    """Configured origin for links sent by email; empty means the request's."""
    return get_settings().public_base_url


def get_access_guard(
    token_service: TokenService = Depends(get_token_service),
    user_service: UserService = Depends(get_user_service),
) -> AccessGuard:
    return AccessGuard(token_service, user_service)


async def get_auth_context(
    authorization: Optional[str] = Header(default=None),
    guard: AccessGuard = Depends(get_access_guard),
) -> AuthContext:
    """Authenticate the request from its ``Authorization: Bearer`` header.

    Raises:
        Unauthorized: If the guard rejects the request
    """
    return await guard.authorize(authorization)


async def get_current_user(
    context: AuthContext = Depends(get_auth_context),
) -> User:
    return context.user


def require_roles(
    allowed_roles: AbstractSet[Role],
) -> Callable[..., Awaitable[AuthContext]]:
    """Build a dependency that authenticates, then checks the user's role.

    Args:
        allowed_roles: Roles permitted on the route

    Returns:
        Dependency yielding the AuthContext of an allowed user
    """
    allowed = frozenset(allowed_roles)

    async def _require_roles(
        context: AuthContext = Depends(get_auth_context),
    ) -> AuthContext:
        allow(context.user, allowed)
        return context

    return _require_roles
