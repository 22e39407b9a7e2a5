"""Unit tests for UserService with mocked asyncpg database."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import asyncpg
import pytest

from authgate.errors import ValidationError
from authgate.models.user import Role, User, UserRecord
from authgate.services.user_service import PASSWORD_CHANGE_BACKDATE, UserService


def _row(**overrides):
    now = datetime.now(timezone.utc)
    row = {
        "id": uuid4(),
        "name": "Row User",
        "email": "row@example.com",
        "role": "user",
        "password_changed_at": None,
        "created_at": now,
        "updated_at": now,
        "password_hash": "$2b$12$stored",
        "password_reset_token": None,
        "password_reset_expires": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def password_service():
    service = MagicMock()
    service.hash_password = MagicMock(return_value="$2b$12$hashed")
    return service


@pytest.fixture
def user_service(password_service):
    return UserService(password_service)


@pytest.fixture
def patched_pool(mock_pool):
    pool, conn = mock_pool
    with patch("authgate.services.user_service.get_pool", new_callable=AsyncMock) as get_pool:
        get_pool.return_value = pool
        yield conn


class TestCreateUser:
    async def test_inserts_hashed_password(self, user_service, patched_pool):
        user = await user_service.create_user(
            name="Ann", email="ann@example.com", password="pass1234", role=Role.GUIDE
        )

        assert isinstance(user, User)
        assert user.role is Role.GUIDE
        sql = patched_pool.execute.call_args[0][0]
        assert "INSERT INTO users" in sql
        args = patched_pool.execute.call_args[0][1:]
        assert "$2b$12$hashed" in args
        assert "pass1234" not in args
        assert "guide" in args

    async def test_duplicate_email_is_validation_error(self, user_service, patched_pool):
        patched_pool.execute.side_effect = asyncpg.UniqueViolationError("duplicate key")

        with pytest.raises(ValidationError, match="already in use"):
            await user_service.create_user(
                name="Ann", email="ann@example.com", password="pass1234"
            )


class TestLookups:
    async def test_get_by_id_returns_public_user(self, user_service, patched_pool):
        row = _row()
        patched_pool.fetchrow.return_value = row

        user = await user_service.get_by_id(row["id"])

        assert type(user) is User
        assert user.id == row["id"]

    async def test_get_by_id_missing(self, user_service, patched_pool):
        patched_pool.fetchrow.return_value = None
        assert await user_service.get_by_id(uuid4()) is None

    async def test_get_record_by_email_includes_hash(self, user_service, patched_pool):
        patched_pool.fetchrow.return_value = _row()

        record = await user_service.get_record_by_email("Row@Example.com")

        assert isinstance(record, UserRecord)
        assert record.password_hash == "$2b$12$stored"
        assert "LOWER($1)" in patched_pool.fetchrow.call_args[0][0]

    async def test_get_record_by_reset_token(self, user_service, patched_pool):
        expires = datetime.now(timezone.utc) + timedelta(minutes=5)
        patched_pool.fetchrow.return_value = _row(
            password_reset_token="digest", password_reset_expires=expires
        )

        record = await user_service.get_record_by_reset_token("digest")

        assert record.password_reset_expires == expires
        assert patched_pool.fetchrow.call_args[0][1] == "digest"

    async def test_list_users(self, user_service, patched_pool):
        patched_pool.fetch.return_value = [_row(), _row(role="admin")]

        users = await user_service.list_users()

        assert [u.role for u in users] == [Role.USER, Role.ADMIN]


class TestResetFields:
    async def test_set_reset_token(self, user_service, patched_pool):
        user_id = uuid4()
        expires = datetime.now(timezone.utc) + timedelta(minutes=10)

        await user_service.set_reset_token(user_id, "digest", expires)

        args = patched_pool.execute.call_args[0]
        assert "password_reset_token = $1" in args[0]
        assert args[1:] == ("digest", expires, user_id)

    async def test_clear_reset_token(self, user_service, patched_pool):
        user_id = uuid4()

        await user_service.clear_reset_token(user_id)

        args = patched_pool.execute.call_args[0]
        assert "password_reset_token = NULL" in args[0]
        assert "password_reset_expires = NULL" in args[0]
        assert args[1] == user_id


class TestSetPassword:
    async def test_updates_hash_and_clears_reset(self, user_service, patched_pool):
        row = _row(password_changed_at=datetime.now(timezone.utc))
        patched_pool.fetchrow.return_value = row

        user = await user_service.set_password(row["id"], "new-password")

        sql, password_hash, changed_at, updated_at, user_id = patched_pool.fetchrow.call_args[0]
        assert "password_reset_token = NULL" in sql
        assert password_hash == "$2b$12$hashed"
        assert updated_at - changed_at == PASSWORD_CHANGE_BACKDATE
        assert user_id == row["id"]
        assert user.id == row["id"]

    async def test_missing_user(self, user_service, patched_pool):
        patched_pool.fetchrow.return_value = None
        assert await user_service.set_password(uuid4(), "new-password") is None
