"""
Tests for the Slack and MailChannels senders.

httpx.Client is patched; no network calls are made.
"""

import httpx
from unittest.mock import MagicMock, patch

from feedbacklens.agents.digest import EmailDigest
from feedbacklens.utils.transport import MailChannelsEmailSender, SlackWebhookSender


def patched_client(response=None, error=None):
    """Patch httpx.Client so that client.post returns `response` or raises `error`."""
    client = MagicMock()
    if error is not None:
        client.post.side_effect = error
    else:
        client.post.return_value = response

    client_cls = MagicMock()
    client_cls.return_value.__enter__.return_value = client
    return patch("feedbacklens.utils.transport.httpx.Client", client_cls), client


def test_slack_send_success():
    patcher, client = patched_client(MagicMock(is_success=True, status_code=200))

    with patcher:
        sent = SlackWebhookSender("https://hooks.slack.test/abc").send({"blocks": []})

    assert sent is True
    client.post.assert_called_once_with("https://hooks.slack.test/abc", json={"blocks": []})


def test_slack_send_rejected():
    patcher, _ = patched_client(MagicMock(is_success=False, status_code=400, text="invalid_blocks"))

    with patcher:
        assert SlackWebhookSender("https://hooks.slack.test/abc").send({"blocks": []}) is False


def test_slack_send_transport_error():
    patcher, _ = patched_client(error=httpx.ConnectError("connection refused"))

    with patcher:
        assert SlackWebhookSender("https://hooks.slack.test/abc").send({"blocks": []}) is False


def test_email_request_body():
    sender = MailChannelsEmailSender(api_key="key", from_address="reports@nova.test")
    body = sender.build_request_body(
        EmailDigest(subject="Daily Feedback Report - 2024-07-01", body_text="Total feedback: 3"),
        ["pm@nova.test", "eng@nova.test"]
    )

    assert body == {
        "personalizations": [{"to": [{"email": "pm@nova.test"}, {"email": "eng@nova.test"}]}],
        "from": {"email": "reports@nova.test", "name": "Nova Reports"},
        "subject": "Daily Feedback Report - 2024-07-01",
        "content": [{"type": "text/plain", "value": "Total feedback: 3"}],
    }


def test_email_send_success():
    patcher, client = patched_client(MagicMock(is_success=True, status_code=202))
    digest = EmailDigest(subject="s", body_text="b")

    with patcher:
        sent = MailChannelsEmailSender(api_key="key", from_address="r@nova.test").send(digest, ["pm@nova.test"])

    assert sent is True
    _, kwargs = client.post.call_args
    assert kwargs["headers"] == {"X-Api-Key": "key"}


def test_email_send_without_recipients_skips():
    patcher, client = patched_client(MagicMock(is_success=True, status_code=202))

    with patcher:
        sent = MailChannelsEmailSender(api_key="key", from_address="r@nova.test").send(
            EmailDigest(subject="s", body_text="b"), []
        )

    assert sent is False
    client.post.assert_not_called()


def test_email_send_failure_status():
    patcher, _ = patched_client(MagicMock(is_success=False, status_code=500, text="boom"))

    with patcher:
        sent = MailChannelsEmailSender(api_key="key", from_address="r@nova.test").send(
            EmailDigest(subject="s", body_text="b"), ["pm@nova.test"]
        )

    assert sent is False
