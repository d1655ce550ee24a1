"""Notifier adapters - Out-of-band delivery implementations."""

from .background import BackgroundNotifier
from .console import ConsoleNotifier

__all__ = ["BackgroundNotifier", "ConsoleNotifier"]
