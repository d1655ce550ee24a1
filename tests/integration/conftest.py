"""
Shared fixtures for integration tests.

Integration tests run against the PostgreSQL database named by
DATABASE_URL. When it is unreachable they are skipped.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create a migrated connection pool, or skip if PostgreSQL is down."""
    pool = ConnectionPool(conninfo=get_settings().database_url, min_size=1, max_size=10)
    try:
        pool.wait(timeout=5)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty every table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM consumed_tokens")
        conn.execute("DELETE FROM pending_registrations")
        conn.execute("DELETE FROM users")
        conn.commit()
    yield
