"""Examples database connection manager.

Manages the asyncpg pool backing ``PostgresExampleStore``. The pool is
process-wide; stores borrow connections through ``get_connection``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

logger = logging.getLogger(__name__)

EXAMPLES_TABLE = "nlu_examples"

SCHEMA_DDL = f"""
    CREATE TABLE IF NOT EXISTS {EXAMPLES_TABLE} (
        seq BIGSERIAL,
        id TEXT PRIMARY KEY,
        project_id TEXT NOT NULL,
        intent TEXT,
        text TEXT NOT NULL,
        entities JSONB NOT NULL DEFAULT '[]'::jsonb,
        metadata JSONB NOT NULL DEFAULT '{{}}'::jsonb,
        extra JSONB NOT NULL DEFAULT '{{}}'::jsonb,
        created_at TIMESTAMPTZ,
        updated_at TIMESTAMPTZ
    );
    CREATE INDEX IF NOT EXISTS idx_{EXAMPLES_TABLE}_project_language
        ON {EXAMPLES_TABLE} (project_id, (metadata->>'language'));
    CREATE INDEX IF NOT EXISTS idx_{EXAMPLES_TABLE}_text
        ON {EXAMPLES_TABLE} (project_id, text);
"""


class ExamplesDatabase:
    """Manages the connection pool for the examples database."""

    _pool: Optional[asyncpg.Pool] = None

    @classmethod
    async def init(cls) -> None:
        """Initialize the connection pool from environment configuration."""
        from dotenv import load_dotenv

        from common.config.env import get_env_bool, get_env_int, get_env_str

        load_dotenv()

        if cls._pool is not None:
            return

        db_host = get_env_str("EXAMPLES_DB_HOST", "localhost")
        db_port = get_env_int("EXAMPLES_DB_PORT", 5432)
        db_name = get_env_str("EXAMPLES_DB_NAME", "nlu")
        db_user = get_env_str("EXAMPLES_DB_USER", "postgres")
        db_pass = get_env_str("EXAMPLES_DB_PASSWORD", "")
        min_size = get_env_int("EXAMPLES_DB_POOL_MIN", 1, minimum=1)
        max_size = get_env_int("EXAMPLES_DB_POOL_MAX", 10, minimum=1)

        dsn = f"postgresql://{db_user}:{db_pass}@{db_host}:{db_port}/{db_name}"

        try:
            cls._pool = await asyncpg.create_pool(
                dsn,
                min_size=min_size,
                max_size=max(min_size, max_size),
                command_timeout=30,
                server_settings={"application_name": "nlu_examples"},
            )
        except Exception as e:
            logger.error(f"Failed to connect to examples DB {db_user}@{db_host}/{db_name}: {e}")
            raise ConnectionError(f"Examples DB connection failed: {e}") from e

        logger.info(f"Examples pool established: {db_user}@{db_host}/{db_name}")

        if get_env_bool("EXAMPLES_DB_AUTO_MIGRATE", False):
            await cls.ensure_schema()

    @classmethod
    async def close(cls) -> None:
        """Close the connection pool."""
        if cls._pool:
            await cls._pool.close()
            cls._pool = None
            logger.info("Examples connection pool closed")

    @classmethod
    async def ensure_schema(cls) -> None:
        """Create the examples table and its indexes if missing.

        Intended for local development; deployed databases are migrated out of band.
        """
        if cls._pool is None:
            return
        async with cls._pool.acquire() as conn:
            await conn.execute(SCHEMA_DDL)
        logger.info(f"Ensured {EXAMPLES_TABLE} table exists")

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """Yield a pooled connection."""
        if cls._pool is None:
            raise RuntimeError("Examples pool not initialized. Call ExamplesDatabase.init() first.")

        async with cls._pool.acquire() as conn:
            yield conn
