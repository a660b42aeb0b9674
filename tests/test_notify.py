"""Tests for notification delivery."""

import json

import httpx

from appstore_watch import ConsoleNotifier, Notification, WebhookNotifier, render_notification

WEBHOOK_URL = "https://hooks.example.com/appstore"

NOTIFICATION = Notification(
    title='"WeChat" has an update',
    subtitle="Region: CN  Version: 1.0 → 1.1",
    body="Released: 2024-05-01 15:00:00\nRelease notes:\nFixes.",
    open_url="https://apps.apple.com/cn/app/id414478124",
)


class TestRenderNotification:

    def test_joins_non_empty_lines(self):
        text = render_notification(Notification("Title", "", "Body"))
        assert text == "Title\nBody"


class TestConsoleNotifier:

    def test_writes_to_stderr(self, capsys):
        ConsoleNotifier().post(NOTIFICATION)

        err = capsys.readouterr().err
        assert '"WeChat" has an update' in err
        assert "https://apps.apple.com/cn/app/id414478124" in err


class TestWebhookNotifier:
    """Tests for posting notifications to a webhook."""

    def test_posts_json_payload(self, httpx_mock):
        httpx_mock.add_response(url=WEBHOOK_URL, method="POST", status_code=204)

        WebhookNotifier(WEBHOOK_URL).post(NOTIFICATION)

        payload = json.loads(httpx_mock.get_request().content)
        assert payload["title"] == NOTIFICATION.title
        assert payload["subtitle"] == NOTIFICATION.subtitle
        assert payload["body"] == NOTIFICATION.body
        assert payload["open_url"] == NOTIFICATION.open_url
        assert payload["content"] == render_notification(NOTIFICATION)

    def test_error_status_is_reported_not_raised(self, httpx_mock, capsys):
        httpx_mock.add_response(url=WEBHOOK_URL, method="POST", status_code=500)

        WebhookNotifier(WEBHOOK_URL).post(NOTIFICATION)

        assert "Notification webhook returned 500" in capsys.readouterr().err

    def test_network_error_is_reported_not_raised(self, httpx_mock, capsys):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=WEBHOOK_URL)

        WebhookNotifier(WEBHOOK_URL).post(NOTIFICATION)

        assert "Notification delivery failed" in capsys.readouterr().err
