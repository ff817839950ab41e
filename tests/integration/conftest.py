"""
Name: Integration Test DB Setup

Responsibilities:
  - Ensure database schema exists before integration tests run
  - Run Alembic migrations once per test session
  - Provide a fresh AsyncConnectionPool and an empty `users` table per test

Notes:
  - Only runs when RUN_INTEGRATION=1
  - Uses DATABASE_URL from environment (see alembic/env.py)
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import pytest_asyncio
from alembic import command
from alembic.config import Config
from psycopg import connect

from userapi.crosscutting.config import get_settings
from userapi.infrastructure.db import close_pool, open_pool

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")
DB_PORT = os.getenv("POSTGRES_HOST_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "postgres")
DEFAULT_DATABASE_URL = (
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)


def _check_reachable(url: str) -> None:
    try:
        with connect(url, autocommit=True, connect_timeout=2) as conn:
            conn.execute("SELECT 1")
    except Exception as exc:
        raise RuntimeError(
            "PostgreSQL is required for integration tests. "
            "Start a local server or set DATABASE_URL."
        ) from exc


if os.getenv("RUN_INTEGRATION") == "1":
    os.environ["APP_ENV"] = "integration"
    os.environ.setdefault("DATABASE_URL", DEFAULT_DATABASE_URL)
    get_settings.cache_clear()


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "integration: Tests against a real PostgreSQL (RUN_INTEGRATION=1)"
    )


@pytest.fixture(scope="session", autouse=True)
def apply_migrations() -> None:
    """Run Alembic migrations for integration tests."""
    if os.getenv("RUN_INTEGRATION") != "1":
        return

    database_url = os.environ["DATABASE_URL"]
    _check_reachable(database_url)

    project_dir = Path(__file__).resolve().parents[2]
    config = Config(str(project_dir / "alembic.ini"))
    config.set_main_option("script_location", str(project_dir / "alembic"))

    command.upgrade(config, "head")


@pytest_asyncio.fixture
async def db_pool():
    """Pool fresco por test; la tabla users arranca vacía."""
    settings = get_settings()
    pool = await open_pool(
        settings.database_url,
        min_size=1,
        max_size=4,
        statement_timeout_ms=settings.db_statement_timeout_ms,
    )
    async with pool.connection() as conn:
        await conn.execute("TRUNCATE users RESTART IDENTITY")
    try:
        yield pool
    finally:
        await close_pool(pool)
