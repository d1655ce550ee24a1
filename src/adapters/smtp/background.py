"""
Background notifier adapter - Non-blocking Notifier wrapper.

Delivery runs on a small thread pool so the workflow result never waits
on email. Failures are logged from the worker thread.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from src.domain.ports import Notifier

logger = logging.getLogger(__name__)


class BackgroundNotifier:
    """
    Implements Notifier protocol by dispatching to another Notifier.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, delegate: Notifier, max_workers: int = 2) -> None:
        self._delegate = delegate
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notifier"
        )

    def send_verification_code(self, email: str, code: str) -> None:
        self._submit(self._delegate.send_verification_code, email, code)

    def send_password_reset_code(self, email: str, code: str) -> None:
        self._submit(self._delegate.send_password_reset_code, email, code)

    def send_email_verification(self, email: str, token: str) -> None:
        self._submit(self._delegate.send_email_verification, email, token)

    def _submit(self, send: Callable[[str, str], None], email: str, payload: str) -> Future:
        future = self._executor.submit(send, email, payload)
        future.add_done_callback(lambda f: self._log_failure(f, email))
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting deliveries and, by default, wait for queued ones."""
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _log_failure(future: Future, email: str) -> None:
        error = future.exception()
        if error is not None:
            logger.error("Notification delivery failed for %s", email, exc_info=error)
