"""
Shared fixtures for integration tests.

Requires PostgreSQL at the configured DATABASE_URL (via docker-compose).
Tests that need the database are skipped when it is unreachable.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from authflow.adapters.repository.postgres import PostgresUserRepository, run_migrations
from authflow.config.settings import get_settings


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool and apply migrations once per session."""
    settings = get_settings()
    try:
        with psycopg.connect(settings.database_url, connect_timeout=2):
            pass
    except psycopg.OperationalError:
        pytest.skip("PostgreSQL is not reachable")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean users table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM users")
        conn.commit()
    yield


@pytest.fixture
def pg_repository(pool: ConnectionPool, clean_database: None) -> PostgresUserRepository:
    """Create repository instance for each test."""
    return PostgresUserRepository(pool)
