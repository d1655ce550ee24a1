"""
Registration workflow - Ghost registration promoted to a confirmed user.

Ghost Registration Flow
=======================

States (the token type is the state tag):
- Ghosted:    PendingRegistration stored, register_token issued
- Registered: User created, session issued (terminal)

start():
    1. Reject if the email or username already belongs to a user
       (both checks run, both conflicts reported together)
    2. Hash the password, generate a 6-digit code
    3. Persist a PendingRegistration (no uniqueness reserved)
    4. Encrypt username, email, password hash and code into a
       short-lived register_token
    5. Send the code out-of-band (best effort)

finish():
    1. Verify the register_token and its type
    2. Decrypt the embedded code and compare in constant time
    3. Re-check no user owns the email (registration may have completed
       between start and finish, including a replay of this token)
    4. Load the PendingRegistration named by the token subject; absent
       or already linked fails as Unauthenticated
    5. Create the user, link the ghost to it, mint a session

Unconfirmed state never reaches the users table: everything finish()
needs travels inside the token.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .codes import codes_match, generate_verification_code
from .config import AuthConfig
from .crypto import CipherBox
from .exceptions import Conflict, DecryptionError, InvalidTokenError, Unauthenticated
from .notifications import notify_best_effort
from .passwords import hash_password
from .ports import (
    ConsumedTokenStore,
    Notifier,
    PendingRegistrationRepository,
    Session,
    TokenType,
    UserRepository,
)
from .tokens import TokenClaims, TokenCodec, consume_once

logger = logging.getLogger(__name__)

# Embedded claim names in a register_token
USERNAME_CLAIM = "ecu"
EMAIL_CLAIM = "ece"
PASSWORD_CLAIM = "ecp"
CODE_CLAIM = "ecv"


@dataclass(frozen=True)
class RegistrationStarted:
    """Result of a ghost registration."""

    register_token: str
    expires_in_seconds: int


@dataclass(frozen=True)
class _SealedRegistration:
    claims: TokenClaims
    pending_id: str
    username: str
    email: str
    password_hash: str
    code: str


@dataclass
class RegistrationWorkflow:
    """
    Domain service for ghost -> confirmed registration.

    Orchestrates uniqueness checks, code generation, ghost persistence,
    token sealing and user promotion.
    """

    users: UserRepository
    pending: PendingRegistrationRepository
    notifier: Notifier
    codec: TokenCodec
    cipher: CipherBox
    config: AuthConfig
    token_ledger: ConsumedTokenStore | None = None

    def start(self, username: str, email: str, password: str) -> RegistrationStarted:
        """
        Begin registration and send a verification code.

        Args:
            username: Requested username
            email: User's email address (will be normalized)
            password: User's password (will be hashed)

        Returns:
            RegistrationStarted with the register_token

        Raises:
            Conflict: If the email and/or username already belong to a user
        """
        normalized_email = self._normalize_email(email)

        conflicts = []
        if self.users.exists_by_email(normalized_email):
            conflicts.append(f"Email {normalized_email} already in use")
        if self.users.exists_by_username(username):
            conflicts.append(f"Username {username} already in use")
        if conflicts:
            raise Conflict(*conflicts)

        password_hash = hash_password(password, rounds=self.config.bcrypt_cost)
        code = generate_verification_code()

        ghost = self.pending.create(username, normalized_email, password_hash, code)

        ttl = self.config.ttl_for(TokenType.REGISTER_TOKEN)
        register_token = self.codec.issue(
            ghost.id,
            TokenType.REGISTER_TOKEN,
            {
                USERNAME_CLAIM: self.cipher.encrypt(ghost.username),
                EMAIL_CLAIM: self.cipher.encrypt(ghost.email),
                PASSWORD_CLAIM: self.cipher.encrypt(password_hash),
                CODE_CLAIM: self.cipher.encrypt(code),
            },
            ttl=ttl,
        )

        notify_best_effort(self.notifier.send_verification_code, normalized_email, code)
        logger.info("Ghost registration %s created", ghost.id)
        return RegistrationStarted(
            register_token=register_token,
            expires_in_seconds=int(ttl.total_seconds()),
        )

    def finish(self, register_token: str, verification_code: str) -> Session:
        """
        Confirm a ghost registration and log the new user in.

        Raises:
            Unauthenticated: Bad/expired/wrong-type token, wrong code,
                unknown or already-promoted ghost, consumed token
            Conflict: If a user already owns the email (or username)
        """
        sealed = self._open(register_token)

        if not codes_match(sealed.code, verification_code):
            raise Unauthenticated("Invalid verification code")

        if self.users.exists_by_email(sealed.email):
            raise Conflict("User already exists")

        ghost = self.pending.find_by_id(sealed.pending_id)
        if ghost is None or ghost.linked_user_id is not None:
            raise Unauthenticated("Invalid register token")

        if not consume_once(sealed.claims, self.token_ledger, self.config):
            raise Unauthenticated("Invalid register token")

        user = self.users.create(sealed.username, sealed.email, sealed.password_hash)
        self.pending.link_to_user(ghost.id, user.id)

        logger.info("Ghost registration %s promoted to user %s", ghost.id, user.id)
        return self.codec.issue_session(user.id, user.summary())

    def reap_pending(self, max_age: timedelta, now: datetime | None = None) -> int:
        """
        Delete ghost registrations older than ``max_age``.

        Returns:
            Number of ghosts deleted
        """
        cutoff = (now or datetime.now(timezone.utc)) - max_age
        deleted = self.pending.delete_created_before(cutoff)
        if deleted:
            logger.info("Reaped %d pending registration(s) created before %s", deleted, cutoff)
        return deleted

    def _open(self, register_token: str) -> _SealedRegistration:
        """Verify a register_token and decrypt its embedded fields."""
        try:
            claims = self.codec.verify(register_token).require(TokenType.REGISTER_TOKEN)
            sealed = _SealedRegistration(
                claims=claims,
                pending_id=claims.subject,
                username=self.cipher.decrypt(claims.field_str(USERNAME_CLAIM)),
                email=self.cipher.decrypt(claims.field_str(EMAIL_CLAIM)),
                password_hash=self.cipher.decrypt(claims.field_str(PASSWORD_CLAIM)),
                code=self.cipher.decrypt(claims.field_str(CODE_CLAIM)),
            )
        except (InvalidTokenError, DecryptionError) as e:
            raise Unauthenticated("Invalid register token") from e

        return sealed

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
