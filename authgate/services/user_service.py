"""User store backed by PostgreSQL."""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from authgate.database import get_pool
from authgate.errors import ValidationError
from authgate.models.user import Role, User, UserRecord
from authgate.services.password_service import PasswordService

logger = structlog.get_logger(__name__)

# JWT iat has one-second resolution; backdating the change keeps a token
# issued right after a password change from being treated as stale.
PASSWORD_CHANGE_BACKDATE = timedelta(seconds=1)

_PUBLIC_COLUMNS = "id, name, email, role, password_changed_at, created_at, updated_at"
_RECORD_COLUMNS = (
    f"{_PUBLIC_COLUMNS}, password_hash, password_reset_token, password_reset_expires"
)


def _to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=Role(row["role"]),
        password_changed_at=row["password_changed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _to_record(row: Mapping[str, Any]) -> UserRecord:
    return UserRecord(
        **_to_user(row).model_dump(),
        password_hash=row["password_hash"],
        password_reset_token=row["password_reset_token"],
        password_reset_expires=row["password_reset_expires"],
    )


class UserService:
    """Service for user persistence and password-related mutations."""

    def __init__(self, password_service: Optional[PasswordService] = None):
        self.password_service = password_service or PasswordService()

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        """Create a new user with a hashed password.

        Args:
            name: Display name
            email: Unique, already-normalized email address
            password: Plain-text password (will be hashed)
            role: Role to assign

        Returns:
            Created User model

        Raises:
            ValidationError: If the email is already registered
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)
        password_hash = self.password_service.hash_password(password)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO users (id, name, email, role, password_hash, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7)
                    """,
                    user_id,
                    name,
                    email,
                    role.value,
                    password_hash,
                    now,
                    now,
                )
        except asyncpg.UniqueViolationError:
            logger.info("user_create_duplicate_email")
            raise ValidationError("Email address is already in use")

        logger.info("user_created", user_id=str(user_id), role=role.value)

        return User(
            id=user_id,
            name=name,
            email=email,
            role=role,
            created_at=now,
            updated_at=now,
        )

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by id, without credential fields."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        return _to_user(row) if row is not None else None

    async def get_record_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        """Get the full stored row for a user, including the password hash."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_RECORD_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        return _to_record(row) if row is not None else None

    async def get_record_by_email(self, email: str) -> Optional[UserRecord]:
        """Get the full stored row by email (case-insensitive)."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_RECORD_COLUMNS} FROM users WHERE email = LOWER($1)",
                email,
            )

        return _to_record(row) if row is not None else None

    async def get_record_by_reset_token(self, token_hash: str) -> Optional[UserRecord]:
        """Find the user holding a given reset-token digest.

        Expiry is not filtered here; the caller decides.
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_RECORD_COLUMNS} FROM users WHERE password_reset_token = $1",
                token_hash,
            )

        return _to_record(row) if row is not None else None

    async def list_users(self) -> list[User]:
        """Return all users ordered by creation date."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_PUBLIC_COLUMNS} FROM users ORDER BY created_at ASC"
            )

        return [_to_user(row) for row in rows]

    async def set_reset_token(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> None:
        """Store a reset-token digest and expiry, bypassing model validation."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE users
                SET password_reset_token = $1, password_reset_expires = $2
                WHERE id = $3
                """,
                token_hash,
                expires_at,
                user_id,
            )

        logger.info(
            "password_reset_token_stored",
            user_id=str(user_id),
            expires_at=expires_at.isoformat(),
        )

    async def clear_reset_token(self, user_id: UUID) -> None:
        """Remove any pending reset token."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE users
                SET password_reset_token = NULL, password_reset_expires = NULL
                WHERE id = $1
                """,
                user_id,
            )

        logger.info("password_reset_token_cleared", user_id=str(user_id))

    async def set_password(self, user_id: UUID, password: str) -> Optional[User]:
        """Replace a user's password.

        Also records the change time and clears any pending reset token, so a
        reset token can be used only once and older sessions become stale.

        Returns:
            Updated User model, or None if the user does not exist
        """
        password_hash = self.password_service.hash_password(password)
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET password_hash = $1,
                    password_changed_at = $2,
                    password_reset_token = NULL,
                    password_reset_expires = NULL,
                    updated_at = $3
                WHERE id = $4
                RETURNING {_PUBLIC_COLUMNS}
                """,
                password_hash,
                now - PASSWORD_CHANGE_BACKDATE,
                now,
                user_id,
            )

        if row is None:
            logger.warning("password_update_user_not_found", user_id=str(user_id))
            return None

        logger.info("user_password_changed", user_id=str(user_id))
        return _to_user(row)
