"""Session token codec built on signed JWTs."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt
import structlog

from authgate.errors import InvalidToken
from authgate.models.auth import TokenClaims

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"


class TokenService:
    """Issue and verify signed, time-limited session tokens.

    The signing secret and validity window are supplied by the caller; this
    class never reads configuration itself.
    """

    def __init__(self, secret: str, expires_in: timedelta):
        if not secret:
            raise ValueError("A non-empty signing secret is required")
        if expires_in <= timedelta(0):
            raise ValueError("Token lifetime must be positive")
        self._secret = secret
        self._expires_in = expires_in

    @property
    def expires_in_seconds(self) -> int:
        return int(self._expires_in.total_seconds())

    def issue(self, user_id: UUID, now: Optional[datetime] = None) -> str:
        """Create a signed session token for a user.

        Args:
            user_id: Identifier placed in the ``sub`` claim
            now: Issuance time, defaults to the current UTC time

        Returns:
            Encoded JWT string
        """
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self._expires_in,
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        logger.debug(
            "session_token_issued",
            user_id=str(user_id),
            expires_seconds=self.expires_in_seconds,
        )
        return token

    async def verify(self, token: str) -> TokenClaims:
        """Decode and validate a session token.

        Args:
            token: Encoded JWT string

        Returns:
            TokenClaims with the user id and issue/expiry times

        Raises:
            InvalidToken: If the signature is wrong, the token is malformed
                or missing claims, or it has expired
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["sub", "iat", "exp"]},
            )
            return TokenClaims(
                user_id=UUID(payload["sub"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Your token has expired. Please log in again")
        except (jwt.InvalidTokenError, ValueError, TypeError) as e:
            logger.debug("session_token_rejected", reason=str(e))
            raise InvalidToken("Invalid token. Please log in again")
