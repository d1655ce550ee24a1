"""Repository adapters - Database implementations."""

from .postgres import (
    PostgresConsumedTokenStore,
    PostgresPendingRegistrationRepository,
    PostgresUserRepository,
    run_migrations,
)

__all__ = [
    "PostgresConsumedTokenStore",
    "PostgresPendingRegistrationRepository",
    "PostgresUserRepository",
    "run_migrations",
]
