"""
Password reset workflow - Challenge/response over two short-lived tokens.

States (the token type is the state tag):
    Requested  -> password_verify token issued, code sent by email
    Verified   -> password_reset token issued (no embedded secret)
    Reset      -> password replaced (terminal)

The final step reports every failure as InvalidArgument, unlike the
Unauthenticated used by the other terminal steps. Existing clients
depend on that status, so it is kept.
"""

import logging
from dataclasses import dataclass

from .codes import codes_match, generate_verification_code
from .config import AuthConfig
from .crypto import CipherBox
from .exceptions import (
    DecryptionError,
    InvalidArgument,
    InvalidTokenError,
    NotFound,
    Unauthenticated,
)
from .notifications import notify_best_effort
from .passwords import hash_password
from .ports import ConsumedTokenStore, Notifier, TokenType, UserRepository
from .tokens import TokenCodec, consume_once

logger = logging.getLogger(__name__)

# Embedded claim name for the encrypted code in a password_verify token
CODE_CLAIM = "ssv"

INVALID_RESET_TOKEN = "Invalid or expired verification token"


@dataclass
class PasswordResetWorkflow:
    """Domain service for the forgot-password challenge."""

    users: UserRepository
    notifier: Notifier
    codec: TokenCodec
    cipher: CipherBox
    config: AuthConfig
    token_ledger: ConsumedTokenStore | None = None

    def request(self, email_or_username: str) -> str:
        """
        Send a reset code and return the password_verify token.

        Raises:
            NotFound: If no user matches
        """
        user = self.users.find_by_email_or_username(email_or_username.strip())
        if user is None:
            raise NotFound("User not found")

        code = generate_verification_code()
        token = self.codec.issue(
            user.id,
            TokenType.PASSWORD_VERIFY,
            {CODE_CLAIM: self.cipher.encrypt(code)},
        )
        notify_best_effort(self.notifier.send_password_reset_code, user.email, code)
        logger.info("Password reset requested for user %s", user.id)
        return token

    def verify(self, verification_token: str, code: str) -> str:
        """
        Exchange a correct code for a password_reset token.

        Raises:
            Unauthenticated: Bad/expired/wrong-type token or wrong code
        """
        try:
            claims = self.codec.verify(verification_token).require(TokenType.PASSWORD_VERIFY)
            expected = self.cipher.decrypt(claims.field_str(CODE_CLAIM))
        except (InvalidTokenError, DecryptionError) as e:
            raise Unauthenticated("Invalid verification token") from e

        if not codes_match(expected, code):
            raise Unauthenticated("Invalid verification code")
        if not consume_once(claims, self.token_ledger, self.config):
            raise Unauthenticated("Invalid verification token")

        return self.codec.issue(claims.subject, TokenType.PASSWORD_RESET)

    def reset(self, verification_token: str, new_password: str) -> None:
        """
        Replace the user's password.

        ``confirm_password`` equality is checked at the request boundary.

        Raises:
            InvalidArgument: Any token failure, wrong type, consumed
                token, or missing user
        """
        try:
            claims = self.codec.verify(verification_token).require(TokenType.PASSWORD_RESET)
        except InvalidTokenError as e:
            raise InvalidArgument(INVALID_RESET_TOKEN) from e

        if not consume_once(claims, self.token_ledger, self.config):
            raise InvalidArgument(INVALID_RESET_TOKEN)

        password_hash = hash_password(new_password, rounds=self.config.bcrypt_cost)
        if self.users.update_by_id(claims.subject, password_hash=password_hash) is None:
            raise InvalidArgument(INVALID_RESET_TOKEN)

        logger.info("Password reset for user %s", claims.subject)
