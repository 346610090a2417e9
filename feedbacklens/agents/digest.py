"""
Digest Formatters.

Pure transforms from a SummaryView to channel payloads: a Slack Block Kit
message and a plain-text email. No network calls here; see
feedbacklens.utils.transport for delivery.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from feedbacklens.models.analysis import NEGATIVE
from feedbacklens.models.summary import RecentFeedback, SummaryView, ThemeCount

PREVIEW_CHARS = 100
MAX_DIGEST_THEMES = 5
MAX_DIGEST_NEGATIVE = 5
ELLIPSIS = "..."


@dataclass
class EmailDigest:
    subject: str
    body_text: str


def truncate_preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Cut text to `limit` characters, appending an ellipsis when cut."""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def select_top_themes(summary: SummaryView, limit: int = MAX_DIGEST_THEMES) -> List[ThemeCount]:
    return summary.top_themes[:limit]


def select_negative_items(
    summary: SummaryView,
    limit: int = MAX_DIGEST_NEGATIVE
) -> List[RecentFeedback]:
    """Most recent negative items from the summary's recent window."""
    return [f for f in summary.recent_feedback if f.sentiment == NEGATIVE][:limit]


def _negative_lines(summary: SummaryView, bullet: str) -> List[str]:
    return [
        f"{bullet}[ID:{item.id}] {truncate_preview(item.text)}"
        for item in select_negative_items(summary)
    ]


def format_chat_digest(summary: SummaryView) -> dict:
    """
    Build the Slack digest message.

    Returns:
        Slack webhook payload: {"blocks": [...]}
    """
    sentiment = summary.counts_by_sentiment

    top_themes_text = "\n".join(
        f"{i}. {t.theme} ({t.count})"
        for i, t in enumerate(select_top_themes(summary), 1)
    )
    negative_text = "\n".join(_negative_lines(summary, "• "))

    blocks = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": "📊 Daily Feedback Digest",
            },
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Total Feedback:* {summary.total_count}"},
                {"type": "mrkdwn", "text": f"*Positive:* {sentiment.get('positive', 0)}"},
                {"type": "mrkdwn", "text": f"*Neutral:* {sentiment.get('neutral', 0)}"},
                {"type": "mrkdwn", "text": f"*Negative:* {sentiment.get('negative', 0)}"},
            ],
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*Top Themes:*\n{top_themes_text or 'None yet'}",
            },
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*Recent Negative Feedback:*\n{negative_text or 'None'}",
            },
        },
    ]

    return {"blocks": blocks}


def format_email_digest(summary: SummaryView, report_date: Optional[str] = None) -> EmailDigest:
    """
    Build the plain-text daily report email.

    Args:
        summary: Summary to report on
        report_date: Date shown in subject/body (YYYY-MM-DD); defaults to today (UTC)
    """
    date = report_date or datetime.now(timezone.utc).strftime("%Y-%m-%d")
    sentiment = summary.counts_by_sentiment

    theme_lines = [f"- {t.theme} ({t.count})" for t in select_top_themes(summary)]
    negative_lines = _negative_lines(summary, "- ")

    lines = [
        f"Daily Feedback Report ({date})",
        "",
        f"Total feedback: {summary.total_count}",
        "",
        "Sentiment breakdown:",
        f"- Positive: {sentiment.get('positive', 0)}",
        f"- Neutral: {sentiment.get('neutral', 0)}",
        f"- Negative: {sentiment.get('negative', 0)}",
        "",
        "Top themes:",
        *(theme_lines or ["- (no themes yet)"]),
        "",
        "Recent negative feedback:",
        *(negative_lines or ["- (none)"]),
    ]

    return EmailDigest(
        subject=f"Daily Feedback Report - {date}",
        body_text="\n".join(lines)
    )
