"""
Shared fixtures for integration tests.

Requires PostgreSQL reachable at DATABASE_URL (via docker-compose or a
local server). Tests are skipped when the database is unavailable.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests and apply migrations."""
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=True)
    try:
        pool.wait(timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean registrations table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM registrations")
    yield
