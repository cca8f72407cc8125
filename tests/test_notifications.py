"""Tests del notifier por webhook y del dispatcher asíncrono."""

import threading
import time
from unittest.mock import MagicMock

import pytest
import requests

from monitor_api.notifications import (
    LoggingNotifier,
    Notification,
    NotificationDispatcher,
    WebhookNotifier,
    create_notifier,
)


@pytest.fixture
def notification() -> Notification:
    return Notification(
        recipient_group="kitchen-managers",
        title="🚨 Freezer temperature HIGH",
        message="Freezer temperature HIGH: -10.0°C (limit -25.0 to -15.0°C) for 20 min",
        data={"channel": "freezer"},
    )


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestWebhookNotifier:
    def test_posts_json_payload(self, notification):
        session = MagicMock()
        session.post.return_value = MagicMock(ok=True, status_code=200)
        notifier = WebhookNotifier("http://push.local/hook", timeout_seconds=2, session=session)

        assert notifier.notify(notification) is True

        args, kwargs = session.post.call_args
        assert args[0] == "http://push.local/hook"
        assert kwargs["timeout"] == 2
        assert kwargs["json"]["recipientGroup"] == "kitchen-managers"
        assert kwargs["json"]["data"] == {"channel": "freezer"}

    def test_transport_error_returns_false(self, notification):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        notifier = WebhookNotifier("http://push.local/hook", session=session)

        assert notifier.notify(notification) is False

    def test_http_error_returns_false(self, notification):
        session = MagicMock()
        session.post.return_value = MagicMock(ok=False, status_code=502, text="bad gateway")
        notifier = WebhookNotifier("http://push.local/hook", session=session)

        assert notifier.notify(notification) is False

    def test_factory_selects_transport(self):
        assert isinstance(create_notifier(None), LoggingNotifier)
        assert isinstance(create_notifier("http://push.local/hook"), WebhookNotifier)


class TestNotificationDispatcher:
    def test_delivers_in_background(self, notification):
        notifier = MagicMock()
        notifier.notify.return_value = True
        dispatcher = NotificationDispatcher(notifier, max_queue_size=10, num_workers=1)
        dispatcher.start()
        try:
            assert dispatcher.submit(notification) is True
            assert wait_until(lambda: dispatcher.metrics["delivered"] == 1)
        finally:
            dispatcher.stop()

        notifier.notify.assert_called_once_with(notification)
        assert dispatcher.running is False

    def test_submit_never_blocks_when_full(self, notification):
        release = threading.Event()
        notifier = MagicMock()
        notifier.notify.side_effect = lambda n: release.wait(2) or True
        dispatcher = NotificationDispatcher(notifier, max_queue_size=2, num_workers=1)
        dispatcher.start()
        try:
            results = [dispatcher.submit(notification) for _ in range(10)]
            assert results.count(False) >= 7
            assert dispatcher.metrics["dropped"] == results.count(False)
        finally:
            release.set()
            dispatcher.stop(drain=False)

    def test_notifier_exception_stays_in_worker(self, notification):
        notifier = MagicMock()
        notifier.notify.side_effect = [RuntimeError("boom"), True]
        dispatcher = NotificationDispatcher(notifier, max_queue_size=10, num_workers=1)
        dispatcher.start()
        try:
            dispatcher.submit(notification)
            dispatcher.submit(notification)
            assert wait_until(lambda: dispatcher.metrics["delivered"] == 1)
        finally:
            dispatcher.stop()

        assert dispatcher.metrics["failed"] == 1
