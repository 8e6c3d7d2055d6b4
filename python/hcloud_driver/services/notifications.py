"""
hcloud_driver/services/notifications.py

The notification capability the host provides. The driver only uses it to
report catalog-load failures.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000


class Notifier(Protocol):
    def error(self, title: str, message: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None: ...

    def success(self, title: str, message: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None: ...

    def warning(self, title: str, message: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None: ...


class LoggingNotifier:
    """Notifier used when the host supplies none; writes to the module logger."""

    def error(self, title: str, message: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        logger.error("%s: %s", title, message)

    def success(self, title: str, message: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        logger.info("%s: %s", title, message)

    def warning(self, title: str, message: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        logger.warning("%s: %s", title, message)
