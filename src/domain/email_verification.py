"""
Email verification workflow.

The email_verify token carries no embedded secret: its signature is the
secret. It is long-lived because it travels by email and users click
late.
"""

import logging
from dataclasses import dataclass

from .config import AuthConfig
from .exceptions import InvalidTokenError, NotFound, Unauthenticated
from .notifications import notify_best_effort
from .ports import ConsumedTokenStore, Notifier, TokenType, UserRepository
from .tokens import TokenCodec, consume_once

logger = logging.getLogger(__name__)

INVALID_EMAIL_TOKEN = "Invalid or expired verification token"


@dataclass
class EmailVerificationWorkflow:
    """Domain service for marking an email address verified."""

    users: UserRepository
    notifier: Notifier
    codec: TokenCodec
    config: AuthConfig
    token_ledger: ConsumedTokenStore | None = None

    def start(self, email: str) -> str:
        """
        Issue an email_verify token and hand it to the notifier.

        Raises:
            NotFound: If no user has that email
        """
        user = self.users.find_by_email(email.strip().lower())
        if user is None:
            raise NotFound("User not found")

        token = self.codec.issue(user.id, TokenType.EMAIL_VERIFY)
        notify_best_effort(self.notifier.send_email_verification, user.email, token)
        return token

    def finish(self, verification_token: str, code: str | None = None) -> None:
        """
        Mark the token subject's email verified.

        ``code`` is accepted for wire compatibility and not checked.

        Raises:
            Unauthenticated: Any token failure, wrong type, consumed
                token, or missing user
        """
        try:
            claims = self.codec.verify(verification_token).require(TokenType.EMAIL_VERIFY)
        except InvalidTokenError as e:
            raise Unauthenticated(INVALID_EMAIL_TOKEN) from e

        if not consume_once(claims, self.token_ledger, self.config):
            raise Unauthenticated(INVALID_EMAIL_TOKEN)
        if self.users.update_by_id(claims.subject, email_verified=True) is None:
            raise Unauthenticated(INVALID_EMAIL_TOKEN)

        logger.info("Email verified for user %s", claims.subject)
