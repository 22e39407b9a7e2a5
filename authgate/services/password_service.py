"""Password hashing and verification."""

import base64
import hashlib

import bcrypt


def _prehash(password: str) -> bytes:
    """Digest a password to a fixed 44-byte value before bcrypt.

    bcrypt only looks at the first 72 bytes of its input; digesting first
    keeps every character of a long password significant.
    """
    digest = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(digest)


class PasswordService:
    """bcrypt-backed credential hashing and checking."""

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt with a fresh salt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        hashed = bcrypt.hashpw(_prehash(password), bcrypt.gensalt())
        return hashed.decode("utf-8")

    def check_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a stored bcrypt hash.

        Never raises: a mismatch or an unreadable stored hash is False.
        """
        try:
            return bcrypt.checkpw(_prehash(password), password_hash.encode("utf-8"))
        except ValueError:
            return False


# Checked against when the email is unknown so login timing stays uniform.
DUMMY_PASSWORD_HASH = PasswordService().hash_password("authgate-timing-equalizer")
