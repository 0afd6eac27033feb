"""Tests for the NotificationDispatcher (message building, best-effort delivery)."""

import uuid

import pytest

from models.enums import NotificationOutcome
from notifications.base import AbstractNotifier, LoggingNotifier
from notifications.dispatcher import NotificationDispatcher, build_notifier
from notifications.push import PushGatewayNotifier


class RaisingNotifier(AbstractNotifier):
    def send(self, target, title, body, metadata):
        raise ConnectionError("no route to gateway")


class RefusingNotifier(AbstractNotifier):
    def send(self, target, title, body, metadata):
        return False


def test_success_message(notifier):
    job_id = uuid.uuid4()

    NotificationDispatcher(notifier).notify("device-1", job_id, NotificationOutcome.SUCCESS)

    assert notifier.sent == [{
        "target": "device-1",
        "title": "Image Ready!",
        "body": "Your enhanced image is ready to view and save.",
        "metadata": {"jobId": str(job_id), "success": "true"},
    }]


def test_failure_message(notifier):
    job_id = uuid.uuid4()

    NotificationDispatcher(notifier).notify("device-1", job_id, NotificationOutcome.FAILURE)

    sent = notifier.sent[0]
    assert sent["title"] == "Enhancement Failed"
    assert sent["body"] == "There was an error enhancing your image. Please try again."
    assert sent["metadata"] == {"jobId": str(job_id), "success": "false"}


@pytest.mark.parametrize("target", [None, ""])
def test_missing_target_is_a_no_op(notifier, target):
    NotificationDispatcher(notifier).notify(target, uuid.uuid4(), NotificationOutcome.SUCCESS)
    assert notifier.sent == []


def test_notifier_exception_is_swallowed():
    NotificationDispatcher(RaisingNotifier()).notify(
        "device-1", uuid.uuid4(), NotificationOutcome.SUCCESS
    )


def test_undelivered_notification_is_not_an_error():
    NotificationDispatcher(RefusingNotifier()).notify(
        "device-1", uuid.uuid4(), NotificationOutcome.FAILURE
    )


def test_logging_notifier_accepts_everything():
    assert LoggingNotifier().send("device-token-123456", "t", "b", {"jobId": "x"}) is True


def test_build_notifier_defaults_to_logging(monkeypatch):
    monkeypatch.setattr("notifications.dispatcher.settings.NOTIFIER", "logging")
    assert isinstance(build_notifier(), LoggingNotifier)


def test_build_notifier_push(monkeypatch):
    monkeypatch.setattr("notifications.dispatcher.settings.NOTIFIER", "push")
    monkeypatch.setattr("notifications.dispatcher.settings.PUSH_GATEWAY_URL", "http://push.local/send")
    assert isinstance(build_notifier(), PushGatewayNotifier)


def test_build_notifier_push_without_url(monkeypatch):
    monkeypatch.setattr("notifications.dispatcher.settings.NOTIFIER", "push")
    monkeypatch.setattr("notifications.dispatcher.settings.PUSH_GATEWAY_URL", "")
    with pytest.raises(ValueError, match="PUSH_GATEWAY_URL"):
        build_notifier()


def test_build_notifier_unknown(monkeypatch):
    monkeypatch.setattr("notifications.dispatcher.settings.NOTIFIER", "carrier-pigeon")
    with pytest.raises(ValueError, match="Unknown notifier"):
        build_notifier()
