"""Access Guard: turn an Authorization header into an authenticated user."""

from enum import Enum
from typing import Optional

import structlog

from authgate.errors import InvalidToken, Unauthorized
from authgate.models.auth import AuthContext
from authgate.services.token_service import TokenService
from authgate.services.user_service import UserService

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "Bearer "


class GuardState(str, Enum):
    NO_TOKEN = "no_token"
    INVALID_TOKEN = "invalid_token"
    USER_GONE = "user_gone"
    STALE_SESSION = "stale_session"
    AUTHORIZED = "authorized"


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token from a ``Bearer <token>`` header, else None."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class AccessGuard:
    """Resolve the current user from a session token.

    Each rejection maps to one GuardState and raises Unauthorized.
    """

    def __init__(self, token_service: TokenService, user_service: UserService):
        self.token_service = token_service
        self.user_service = user_service

    def _deny(self, state: GuardState, message: str) -> Unauthorized:
        logger.info("access_denied", state=state.value)
        return Unauthorized(message)

    async def authorize(self, authorization: Optional[str]) -> AuthContext:
        """Run the full guard sequence.

        Args:
            authorization: Raw Authorization header value, if any

        Returns:
            AuthContext with the fresh user and verified claims

        Raises:
            Unauthorized: For a missing token, an invalid or expired token,
                a deleted user, or a token older than the last password change
        """
        token = extract_bearer(authorization)
        if token is None:
            raise self._deny(
                GuardState.NO_TOKEN,
                "You are not logged in. Please log in to get access",
            )

        try:
            claims = await self.token_service.verify(token)
        except InvalidToken as e:
            raise self._deny(GuardState.INVALID_TOKEN, e.message)

        user = await self.user_service.get_by_id(claims.user_id)
        if user is None:
            raise self._deny(
                GuardState.USER_GONE,
                "The user belonging to this token no longer exists",
            )

        if user.changed_password_after(claims.issued_at):
            raise self._deny(
                GuardState.STALE_SESSION,
                "User recently changed password. Please log in again",
            )

        structlog.contextvars.bind_contextvars(user_id=str(user.id))
        return AuthContext(user=user, claims=claims)
