"""
PostgreSQL repository adapter - Implements UserRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Email uniqueness is enforced by the UNIQUE constraint on users.email.
The domain's lookup-before-create is only a fast path; two concurrent
registrations that both pass it are settled here, where the losing
INSERT raises UniqueViolation and is reported as EmailAlreadyInUse.
"""

import logging
import uuid
from pathlib import Path

from psycopg import errors
from psycopg_pool import ConnectionPool

from authflow.domain.exceptions import EmailAlreadyInUse
from authflow.domain.models import EmailStatus, NewUserRecord, UserRecord, UserView

logger = logging.getLogger(__name__)

_COLUMNS = "id, email, name, password_hash, email_status, created_at"


def _to_record(row: tuple) -> UserRecord:
    return UserRecord(
        id=str(row[0]),
        email=row[1],
        name=row[2],
        password_hash=row[3],
        email_status=EmailStatus(row[4]),
        created_at=row[5],
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (TypeError, ValueError):
        return False
    return True


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_id(self, user_id: str) -> UserRecord | None:
        # Ids that are not UUIDs cannot exist; don't let Postgres reject the cast
        if not _is_uuid(user_id):
            return None

        sql = f"SELECT {_COLUMNS} FROM users WHERE id = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (user_id,))
            row = cursor.fetchone()
        return _to_record(row) if row else None

    def find_by_email(self, email: str) -> UserRecord | None:
        sql = f"SELECT {_COLUMNS} FROM users WHERE email = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _to_record(row) if row else None

    def create(self, data: NewUserRecord) -> UserRecord:
        """
        Insert a new user. id and created_at come from column defaults.

        Raises:
            EmailAlreadyInUse: If the email is already taken
        """
        sql = f"""
            INSERT INTO users (email, name, password_hash, email_status)
            VALUES (%s, %s, %s, %s)
            RETURNING {_COLUMNS}
        """
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(
                    sql, (data.email, data.name, data.password_hash, data.email_status.value)
                )
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation:
            raise EmailAlreadyInUse(data.email) from None
        return _to_record(row)

    def update_by_id(
        self,
        user_id: str,
        user: UserView,
        expected_status: EmailStatus | None = None,
    ) -> UserRecord | None:
        """
        Overwrite mutable columns. created_at and password_hash are left alone.

        With expected_status set, the row is written only while its
        email_status still equals it; a concurrent transition makes the
        UPDATE match nothing and None is returned.

        Raises:
            EmailAlreadyInUse: If the new email belongs to another user
        """
        if not _is_uuid(user_id):
            return None

        sql = f"""
            UPDATE users
            SET email = %s, name = %s, email_status = %s
            WHERE id = %s
            RETURNING {_COLUMNS}
        """
        params: tuple = (user.email, user.name, user.email_status.value, user_id)

        # SQL to update only from the state the caller read
        guarded_sql = f"""
            UPDATE users
            SET email = %s, name = %s, email_status = %s
            WHERE id = %s AND email_status = %s
            RETURNING {_COLUMNS}
        """
        if expected_status is not None:
            sql = guarded_sql
            params = (*params, expected_status.value)

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation:
            raise EmailAlreadyInUse(user.email) from None
        return _to_record(row) if row else None

    def delete_by_id(self, user_id: str) -> None:
        if not _is_uuid(user_id):
            return

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM users WHERE id = %s", (user_id,))
            conn.commit()


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: authflow/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
