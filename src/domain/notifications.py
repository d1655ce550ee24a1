"""Best-effort out-of-band delivery."""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


def notify_best_effort(send: Callable[[str, str], None], email: str, payload: str) -> None:
    """
    Call a Notifier method, logging instead of raising on failure.

    Delivery is not part of the workflow's correctness contract: the
    caller already holds the token and can ask for a new one.
    """
    try:
        send(email, payload)
    except Exception:
        logger.exception("Notification delivery failed for %s", email)
