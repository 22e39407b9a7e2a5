"""asyncpg pool lifecycle and schema migrations for the user store."""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from authgate.config import get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"

_LEDGER_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    filename VARCHAR(255) PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the shared pool.

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_database() first.")
    return _pool


async def init_database(dsn: Optional[str] = None) -> asyncpg.Pool:
    """Create the shared pool once; later calls return the same pool.

    Args:
        dsn: Connection string, defaults to ``Settings.postgres_url``
    """
    global _pool

    if _pool is not None:
        return _pool

    try:
        _pool = await asyncpg.create_pool(
            dsn or get_settings().postgres_url,
            min_size=2,
            max_size=10,
            command_timeout=60,
        )
    except (asyncpg.PostgresError, OSError) as e:
        logger.error("database_pool_creation_failed", error=str(e))
        raise

    logger.info("database_pool_created", min_size=2, max_size=10)
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("database_pool_closed")


async def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply pending ``*.sql`` files in file-name order.

    Applied file names are recorded in ``schema_migrations``; each file runs
    in its own transaction together with its ledger row, so a failed file
    leaves no partial state and is retried on the next start.

    Returns:
        Names of the files applied by this call
    """
    if not migrations_dir.exists():
        logger.warning("migrations_directory_not_found", path=str(migrations_dir))
        return []

    pool = await get_pool()
    applied_now: list[str] = []

    async with pool.acquire() as conn:
        await conn.execute(_LEDGER_DDL)
        rows = await conn.fetch("SELECT filename FROM schema_migrations")
        already_applied = {row["filename"] for row in rows}

        for migration_file in sorted(migrations_dir.glob("*.sql")):
            if migration_file.name in already_applied:
                continue
            try:
                async with conn.transaction():
                    await conn.execute(migration_file.read_text())
                    await conn.execute(
                        "INSERT INTO schema_migrations (filename) VALUES ($1)",
                        migration_file.name,
                    )
            except Exception as e:
                logger.error("migration_failed", file=migration_file.name, error=str(e))
                raise
            applied_now.append(migration_file.name)
            logger.info("migration_applied", file=migration_file.name)

    logger.info("migrations_complete", applied=len(applied_now))
    return applied_now


async def health_check() -> bool:
    """Return True if the user store answers ``SELECT 1``."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
