"""One-time password reset tokens.

Only the SHA-256 digest of a reset token is ever stored. The plaintext is
handed back to the caller once, for delivery by email.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from authgate.errors import TokenInvalidOrExpired
from authgate.models.auth import ResetToken

RESET_TOKEN_BYTES = 32


class ResetTokenService:
    """Generate and match password reset tokens."""

    def __init__(self, expires_in: timedelta = timedelta(minutes=10)):
        self._expires_in = expires_in

    @staticmethod
    def hash_token(plain_token: str) -> str:
        return hashlib.sha256(plain_token.encode("utf-8")).hexdigest()

    def generate(self, now: Optional[datetime] = None) -> ResetToken:
        """Create a random token, its digest, and its expiry."""
        now = now or datetime.now(timezone.utc)
        plain_token = secrets.token_hex(RESET_TOKEN_BYTES)
        return ResetToken(
            plain_token=plain_token,
            hashed_token=self.hash_token(plain_token),
            expires_at=now + self._expires_in,
        )

    def match(
        self,
        incoming_token: str,
        stored_hash: Optional[str],
        stored_expiry: Optional[datetime],
        now: Optional[datetime] = None,
    ) -> None:
        """Check an incoming token against the stored digest and expiry.

        Raises:
            TokenInvalidOrExpired: If nothing is stored, the digest differs,
                or the expiry is not in the future
        """
        if stored_hash is None or stored_expiry is None:
            raise TokenInvalidOrExpired()

        now = now or datetime.now(timezone.utc)
        if not hmac.compare_digest(self.hash_token(incoming_token), stored_hash):
            raise TokenInvalidOrExpired()
        if stored_expiry <= now:
            raise TokenInvalidOrExpired()
