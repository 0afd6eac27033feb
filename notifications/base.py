"""
Notifier interface — how a finished job reaches the user's device.

The dispatcher builds the message; a notifier only delivers it. send()
runs on the job's worker thread, so implementations are synchronous.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class AbstractNotifier(ABC):

    @abstractmethod
    def send(self, target: str, title: str, body: str, metadata: dict[str, str]) -> bool:
        """
        Deliver one notification to a device token.

        Returns True if the transport accepted it. May return False or raise
        on failure; the dispatcher logs and swallows both.
        """
        ...


class LoggingNotifier(AbstractNotifier):
    """Default notifier: writes the notification to the log instead of a device."""

    def send(self, target: str, title: str, body: str, metadata: dict[str, str]) -> bool:
        logger.info(f"Notification to {target[:12]}...: {title} | {body} {metadata}")
        return True
