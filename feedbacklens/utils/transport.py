"""
Transport utility.

Delivers digest payloads to external channels: a Slack incoming webhook
and the MailChannels send API. Failures are logged and reported as False.
"""

import logging
from typing import List

import httpx

from feedbacklens.agents.digest import EmailDigest

logger = logging.getLogger(__name__)

MAILCHANNELS_SEND_URL = "https://api.mailchannels.net/tx/v1/send"


class SlackWebhookSender:
    """Posts Block Kit messages to a Slack incoming webhook."""

    def __init__(self, webhook_url: str, timeout_seconds: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds

    def send(self, payload: dict) -> bool:
        """
        Post a message payload.

        Returns:
            True if Slack accepted the message
        """
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Slack webhook error: {e}")
            return False

        if response.is_success:
            logger.info("Slack digest sent")
            return True

        logger.error(f"Slack webhook rejected digest: {response.status_code} {response.text}")
        return False


class MailChannelsEmailSender:
    """Sends plain-text email through the MailChannels API."""

    def __init__(
        self,
        api_key: str,
        from_address: str,
        from_name: str = "Nova Reports",
        send_url: str = MAILCHANNELS_SEND_URL,
        timeout_seconds: float = 10.0
    ):
        """
        Args:
            api_key: MailChannels API key
            from_address: Sender email address
            from_name: Sender display name
            send_url: MailChannels send endpoint
            timeout_seconds: Request timeout
        """
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name
        self.send_url = send_url
        self.timeout_seconds = timeout_seconds

    def build_request_body(self, digest: EmailDigest, recipients: List[str]) -> dict:
        return {
            "personalizations": [{"to": [{"email": r} for r in recipients]}],
            "from": {"email": self.from_address, "name": self.from_name},
            "subject": digest.subject,
            "content": [{"type": "text/plain", "value": digest.body_text}],
        }

    def send(self, digest: EmailDigest, recipients: List[str]) -> bool:
        """
        Send the digest to all recipients.

        Returns:
            True if MailChannels accepted the message
        """
        if not recipients:
            logger.warning("No email recipients configured, skipping send")
            return False

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    self.send_url,
                    json=self.build_request_body(digest, recipients),
                    headers={"X-Api-Key": self.api_key}
                )
        except httpx.HTTPError as e:
            logger.error(f"MailChannels request failed: {e}")
            return False

        logger.info(f"MailChannels response: status={response.status_code}")

        if not response.is_success:
            logger.error(f"Daily report email failed: {response.status_code} {response.text}")
            return False

        logger.info(f"Daily report email sent to {len(recipients)} recipients")
        return True
