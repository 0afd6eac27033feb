"""
Notification dispatcher — tells the user's device how their job ended.

Best-effort by contract: a missing device token is a no-op, and any
failure from the notifier is logged and swallowed. Nothing here can
change a job's status.
"""

import logging
import uuid

from config.settings import settings
from models.enums import NotificationOutcome
from notifications.base import AbstractNotifier, LoggingNotifier
from notifications.push import PushGatewayNotifier

logger = logging.getLogger(__name__)


class NotificationDispatcher:

    MESSAGES = {
        NotificationOutcome.SUCCESS: (
            "Image Ready!",
            "Your enhanced image is ready to view and save.",
        ),
        NotificationOutcome.FAILURE: (
            "Enhancement Failed",
            "There was an error enhancing your image. Please try again.",
        ),
    }

    def __init__(self, notifier: AbstractNotifier):
        self._notifier = notifier

    def notify(
        self, target: str | None, job_id: uuid.UUID, outcome: NotificationOutcome
    ) -> None:
        if not target:
            return

        title, body = self.MESSAGES[outcome]
        metadata = {
            "jobId": str(job_id),
            "success": "true" if outcome is NotificationOutcome.SUCCESS else "false",
        }
        try:
            delivered = self._notifier.send(target, title, body, metadata)
        except Exception as e:
            logger.error(f"Notification for job {job_id} raised: {e}", exc_info=True)
            return

        if delivered:
            logger.info(f"Sent {outcome.value} notification for job {job_id}")
        else:
            logger.warning(f"Notification for job {job_id} was not delivered")


def build_notifier() -> AbstractNotifier:
    """Pick the notifier transport from settings.NOTIFIER."""
    if settings.NOTIFIER == "push":
        if not settings.PUSH_GATEWAY_URL:
            raise ValueError("NOTIFIER=push requires PUSH_GATEWAY_URL")
        return PushGatewayNotifier(
            settings.PUSH_GATEWAY_URL,
            token=settings.PUSH_GATEWAY_TOKEN or None,
            timeout=settings.PUSH_TIMEOUT_SECONDS,
        )
    if settings.NOTIFIER == "logging":
        return LoggingNotifier()
    raise ValueError(f"Unknown notifier: '{settings.NOTIFIER}'. Available: ['logging', 'push']")
