"""
Database connection module for DueList.

Provides the asyncpg connection pool backing PostgresTaskStore. The pool is
owned by whoever creates it (the app at startup); nothing here is global.
"""

import logging
import os
from typing import Optional

import asyncpg

logger = logging.getLogger(__name__)

# Unset means "no persistent backend": the app falls back to the in-memory store
DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or None

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tasks (
    id          BIGSERIAL PRIMARY KEY,
    title       TEXT NOT NULL,
    due_date    TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    completed   BOOLEAN NOT NULL DEFAULT FALSE,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS tasks_due_date_idx ON tasks (due_date);
"""


async def create_db_pool(
    database_url: Optional[str] = None,
    min_size: int = 1,
    max_size: int = 10,
    command_timeout: float = 60.0,
) -> asyncpg.Pool:
    """
    Create the connection pool.

    Should be called once at application startup.
    """
    dsn = database_url or DATABASE_URL
    if not dsn:
        raise RuntimeError("DATABASE_URL is not set")

    logger.info(f"Initializing database pool (min={min_size}, max={max_size})")

    try:
        pool = await asyncpg.create_pool(
            dsn,
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
        )
    except Exception as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise

    logger.info("Database pool initialized successfully")
    return pool


async def close_db_pool(pool: Optional[asyncpg.Pool]) -> None:
    """Close the pool; a no-op when there is none."""
    if pool is None:
        return

    logger.info("Closing database pool")
    await pool.close()
    logger.info("Database pool closed")


async def init_schema(pool: asyncpg.Pool) -> None:
    """Create the tasks table if it does not exist yet."""
    logger.info("Initializing database schema")
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_SQL)
    logger.info("Database schema initialized successfully")
