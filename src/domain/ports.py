"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the entities and interfaces (ports) that the domain
requires from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class TokenType(str, Enum):
    """
    Token type discriminator - the state tag of every workflow.

    Workflow transitions (token type consumed -> token type minted):
    - Registration:   register_token -> access_token + refresh_token
    - Session:        refresh_token  -> access_token + refresh_token
    - Password reset: password_verify -> password_reset -> (terminal)
    - Email verify:   email_verify   -> (terminal)

    The enumeration is closed. Dispatch over it ends in
    ``typing.assert_never`` so a new member must be handled everywhere.
    """

    REGISTER_TOKEN = "register_token"
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"
    PASSWORD_VERIFY = "password_verify"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFY = "email_verify"


@dataclass(frozen=True)
class User:
    """Confirmed identity. ``password_hash`` is bcrypt, never plaintext."""

    id: str
    username: str
    email: str
    password_hash: str
    email_verified: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def summary(self) -> dict[str, str]:
        """Public-safe fields that may travel as plaintext token claims."""
        return {"username": self.username, "email": self.email}


@dataclass(frozen=True)
class PendingRegistration:
    """Unconfirmed ("ghost") registration attempt."""

    id: str
    username: str
    email: str
    password_hash: str
    verification_code: str
    linked_user_id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Session:
    """Access and refresh token pair sharing one subject."""

    access_token: str
    refresh_token: str


class UserRepository(Protocol):
    """Port interface for user persistence. Every call is atomic."""

    def find_by_id(self, user_id: str) -> User | None:
        """Return the user, or None for unknown or malformed ids."""
        ...

    def find_by_email(self, email: str) -> User | None: ...

    def find_by_email_or_username(self, identifier: str) -> User | None:
        """Match ``identifier`` against the email or the username."""
        ...

    def exists_by_email(self, email: str) -> bool: ...

    def exists_by_username(self, username: str) -> bool: ...

    def create(self, username: str, email: str, password_hash: str) -> User:
        """
        Insert a new user.

        Raises:
            Conflict: If the username or email is already taken
        """
        ...

    def update_by_id(self, user_id: str, **fields: object) -> User | None:
        """
        Partially update a user.

        Accepted fields: username, email, password_hash, email_verified.

        Returns:
            The updated user, or None if no user has that id
        """
        ...

    def delete_by_id(self, user_id: str) -> bool: ...

    def list_page(self, offset: int, limit: int) -> list[User]: ...

    def count(self) -> int: ...


class PendingRegistrationRepository(Protocol):
    """Port interface for ghost registration persistence."""

    def create(
        self, username: str, email: str, password_hash: str, verification_code: str
    ) -> PendingRegistration:
        """Insert a pending registration. Never enforces uniqueness."""
        ...

    def find_by_id(self, pending_id: str) -> PendingRegistration | None: ...

    def link_to_user(self, pending_id: str, user_id: str) -> None: ...

    def delete_created_before(self, cutoff: datetime) -> int:
        """Delete pending registrations created before ``cutoff``; return count."""
        ...


class Notifier(Protocol):
    """Port interface for out-of-band delivery. Best effort only."""

    def send_verification_code(self, email: str, code: str) -> None: ...

    def send_password_reset_code(self, email: str, code: str) -> None: ...

    def send_email_verification(self, email: str, token: str) -> None: ...


class ConsumedTokenStore(Protocol):
    """Port interface for the optional consume-once token ledger."""

    def consume(self, token_id: str, expires_at: datetime) -> bool:
        """
        Mark a token id as used.

        Returns:
            True on first consumption, False if it was already consumed
        """
        ...
