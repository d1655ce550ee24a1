"""
Session workflow - Login, refresh, logout.

Every failure path in this module is coarse: callers learn
that a credential or token was rejected, never which check rejected it
(unknown user vs wrong password, expired vs malformed vs deleted user).

Logout is advisory only. There is no server-side revocation list, so an
access token stays valid until it expires and logging out twice with
the same token succeeds twice.
"""

import logging
from dataclasses import dataclass

from .exceptions import InvalidTokenError, Unauthenticated
from .passwords import verify_password
from .ports import Session, TokenType, User, UserRepository
from .tokens import TokenCodec

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Email or password is incorrect"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
INVALID_ACCESS_TOKEN = "Invalid access token"


@dataclass
class SessionWorkflow:
    """Domain service for session establishment and renewal."""

    users: UserRepository
    codec: TokenCodec

    def login(self, email_or_username: str, password: str) -> Session:
        """
        Authenticate with a password and mint a session.

        bcrypt runs even when no user matches, so both failure modes
        cost the same and produce the same error.

        Raises:
            Unauthenticated: Unknown identifier or wrong password
        """
        user = self.users.find_by_email_or_username(email_or_username.strip())
        password_valid = verify_password(password, user.password_hash if user else None)
        if user is None or not password_valid:
            raise Unauthenticated(LOGIN_FAILED)

        logger.info("User %s logged in", user.id)
        return self.codec.issue_session(user.id, user.summary())

    def refresh(self, refresh_token: str) -> Session:
        """
        Exchange a refresh token for a new session.

        Raises:
            Unauthenticated: Any token failure, wrong type, or missing user
        """
        user = self._resolve(refresh_token, TokenType.REFRESH_TOKEN, INVALID_REFRESH_TOKEN)
        return self.codec.issue_session(user.id, user.summary())

    def logout(self, access_token: str) -> None:
        """
        Acknowledge a logout. No state changes.

        Raises:
            Unauthenticated: Any token failure, wrong type, or missing user
        """
        user = self._resolve(access_token, TokenType.ACCESS_TOKEN, INVALID_ACCESS_TOKEN)
        logger.info("User %s logged out", user.id)

    def authenticate(self, access_token: str) -> User:
        """Resolve the user behind a bearer access token."""
        return self._resolve(access_token, TokenType.ACCESS_TOKEN, INVALID_ACCESS_TOKEN)

    def _resolve(self, token: str, expected: TokenType, message: str) -> User:
        try:
            claims = self.codec.verify(token).require(expected)
        except InvalidTokenError as e:
            raise Unauthenticated(message) from e

        user = self.users.find_by_id(claims.subject)
        if user is None:
            raise Unauthenticated(message)
        return user
