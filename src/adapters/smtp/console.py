"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging codes and verification tokens for development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints codes and tokens to stdout.
    """

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Log a registration verification code (simulates email delivery).

        Logged at INFO level to be visible in docker-compose logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit verification code
        """
        logger.info("[VERIFICATION] Email: %s Code: %s", email, code)

    def send_password_reset_code(self, email: str, code: str) -> None:
        logger.info("[PASSWORD RESET] Email: %s Code: %s", email, code)

    def send_email_verification(self, email: str, token: str) -> None:
        logger.info("[EMAIL VERIFY] Email: %s Token: %s", email, token)
