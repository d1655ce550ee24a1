"""
PostgreSQL repository adapters - Implement the domain repository protocols.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL:

- PostgresUserRepository:                 users table (UserRepository)
- PostgresPendingRegistrationRepository:  pending_registrations table
- PostgresConsumedTokenStore:             consumed_tokens table

Every method is a single atomic statement. Uniqueness of users.email and
users.username is enforced by UNIQUE constraints; a violation surfaces
as the domain's Conflict so concurrent registrations for the same
identity let exactly one user through.

Ids are UUIDs. Malformed ids are treated as unknown rather than passed
to the database, so a forged token subject reads as "no such user".
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path

from psycopg import sql
from psycopg.errors import UniqueViolation
from psycopg_pool import ConnectionPool

from src.domain.exceptions import Conflict
from src.domain.ports import PendingRegistration, User

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, username, email, password_hash, email_verified, created_at, updated_at"
_PENDING_COLUMNS = (
    "id, username, email, password_hash, verification_code, linked_user_id, created_at"
)
_UPDATABLE_USER_FIELDS = frozenset({"username", "email", "password_hash", "email_verified"})


def _parse_id(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _row_to_user(row: tuple) -> User:
    return User(
        id=str(row[0]),
        username=row[1],
        email=row[2],
        password_hash=row[3],
        email_verified=row[4],
        created_at=row[5],
        updated_at=row[6],
    )


def _row_to_pending(row: tuple) -> PendingRegistration:
    return PendingRegistration(
        id=str(row[0]),
        username=row[1],
        email=row[2],
        password_hash=row[3],
        verification_code=row[4],
        linked_user_id=str(row[5]) if row[5] is not None else None,
        created_at=row[6],
    )


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

    def _fetch_one(self, query: str, params: tuple) -> User | None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_id(self, user_id: str) -> User | None:
        uid = _parse_id(user_id)
        if uid is None:
            return None
        return self._fetch_one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s", (uid,))

    def find_by_email(self, email: str) -> User | None:
        return self._fetch_one(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = lower(%s)", (email,)
        )

    def find_by_email_or_username(self, identifier: str) -> User | None:
        """
        Match ``identifier`` against email (case-insensitive) or username.

        An email match wins over a username match.
        """
        query = f"""
            SELECT {_USER_COLUMNS} FROM users
            WHERE email = lower(%s) OR username = %s
            ORDER BY (email = lower(%s)) DESC
            LIMIT 1
        """
        return self._fetch_one(query, (identifier, identifier, identifier))

    def exists_by_email(self, email: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM users WHERE email = lower(%s)", (email,))
            return cursor.fetchone() is not None

    def exists_by_username(self, username: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM users WHERE username = %s", (username,))
            return cursor.fetchone() is not None

    def create(self, username: str, email: str, password_hash: str) -> User:
        """
        Insert a new user.

        The UNIQUE constraints on email and username make this the
        authoritative uniqueness check; the domain's pre-checks only
        produce friendlier messages.

        Raises:
            Conflict: If the username or email is already taken
        """
        query = f"""
            INSERT INTO users (username, email, password_hash)
            VALUES (%s, lower(%s), %s)
            RETURNING {_USER_COLUMNS}
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            try:
                cursor.execute(query, (username, email, password_hash))
            except UniqueViolation as e:
                raise Conflict("User already exists") from e
            row = cursor.fetchone()
            conn.commit()
        return _row_to_user(row)

    def update_by_id(self, user_id: str, **fields: object) -> User | None:
        """
        Partially update a user and bump updated_at.

        Raises:
            ValueError: For fields outside username/email/password_hash/email_verified
            Conflict: If the new username or email is taken
        """
        unknown = set(fields) - _UPDATABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")

        uid = _parse_id(user_id)
        if uid is None:
            return None
        if not fields:
            return self.find_by_id(user_id)

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(name)) for name in fields
        )
        query = sql.SQL(
            "UPDATE users SET {assignments}, updated_at = NOW() WHERE id = %s RETURNING {columns}"
        ).format(assignments=assignments, columns=sql.SQL(_USER_COLUMNS))
        values = [
            value.strip().lower() if name == "email" and isinstance(value, str) else value
            for name, value in fields.items()
        ]

        with self._pool.connection() as conn, conn.cursor() as cursor:
            try:
                cursor.execute(query, (*values, uid))
            except UniqueViolation as e:
                raise Conflict("Username or email already registered") from e
            row = cursor.fetchone()
            conn.commit()
        return _row_to_user(row) if row is not None else None

    def delete_by_id(self, user_id: str) -> bool:
        uid = _parse_id(user_id)
        if uid is None:
            return False
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM users WHERE id = %s", (uid,))
            conn.commit()
            return cursor.rowcount == 1

    def list_page(self, offset: int, limit: int) -> list[User]:
        query = f"""
            SELECT {_USER_COLUMNS} FROM users
            ORDER BY created_at, id
            OFFSET %s LIMIT %s
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(query, (offset, limit))
            return [_row_to_user(row) for row in cursor.fetchall()]

    def count(self) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT COUNT(*) FROM users")
            return cursor.fetchone()[0]


class PostgresPendingRegistrationRepository:
    """
    Implements PendingRegistrationRepository protocol via psycopg3.

    No uniqueness constraint on username/email: two concurrent ghost
    registrations for one identity both succeed and are only
    disambiguated when one of them finishes.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def create(
        self, username: str, email: str, password_hash: str, verification_code: str
    ) -> PendingRegistration:
        query = f"""
            INSERT INTO pending_registrations (username, email, password_hash, verification_code)
            VALUES (%s, %s, %s, %s)
            RETURNING {_PENDING_COLUMNS}
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(query, (username, email, password_hash, verification_code))
            row = cursor.fetchone()
            conn.commit()
        return _row_to_pending(row)

    def find_by_id(self, pending_id: str) -> PendingRegistration | None:
        pid = _parse_id(pending_id)
        if pid is None:
            return None
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                f"SELECT {_PENDING_COLUMNS} FROM pending_registrations WHERE id = %s", (pid,)
            )
            row = cursor.fetchone()
        return _row_to_pending(row) if row is not None else None

    def link_to_user(self, pending_id: str, user_id: str) -> None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                "UPDATE pending_registrations SET linked_user_id = %s WHERE id = %s",
                (_parse_id(user_id), _parse_id(pending_id)),
            )
            conn.commit()

    def delete_created_before(self, cutoff: datetime) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM pending_registrations WHERE created_at < %s", (cutoff,))
            conn.commit()
            return cursor.rowcount


class PostgresConsumedTokenStore:
    """
    Implements ConsumedTokenStore protocol via psycopg3.

    INSERT ... ON CONFLICT DO NOTHING makes consumption atomic: of two
    concurrent requests presenting the same token, exactly one sees
    rowcount == 1.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def consume(self, token_id: str, expires_at: datetime) -> bool:
        sql_text = """
            INSERT INTO consumed_tokens (token_id, expires_at)
            VALUES (%s, %s)
            ON CONFLICT (token_id) DO NOTHING
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql_text, (token_id, expires_at))
            conn.commit()
            return cursor.rowcount == 1

    def purge_expired(self) -> int:
        """Forget consumed token ids whose tokens have expired anyway."""
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM consumed_tokens WHERE expires_at < NOW()")
            conn.commit()
            return cursor.rowcount


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
