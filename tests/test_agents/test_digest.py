"""
Tests for the Digest Formatters.
"""

from feedbacklens.agents.digest import (
    format_chat_digest,
    format_email_digest,
    truncate_preview,
)
from feedbacklens.models.summary import RecentFeedback, SummaryView, ThemeCount


def make_summary(negative_count=7, theme_count=8):
    recent = []
    for i in range(negative_count):
        recent.append(RecentFeedback(
            id=100 + i,
            source="support",
            timestamp=f"2024-06-0{(i % 9) + 1}",
            text=f"Negative item {i}",
            sentiment="negative"
        ))
    recent.insert(1, RecentFeedback(id=1, source="email", timestamp="2024-06-01", text="Nice!", sentiment="positive"))
    recent.append(RecentFeedback(id=2, source="email", timestamp="2024-06-01", text="Pending"))

    return SummaryView(
        total_count=42,
        counts_by_source={"support": 30, "email": 12},
        counts_by_sentiment={"positive": 10, "neutral": 5, "negative": 20},
        top_themes=[ThemeCount(theme=f"Theme {i}", count=20 - i) for i in range(theme_count)],
        recent_feedback=recent
    )


def test_truncate_preview():
    assert truncate_preview("short") == "short"
    assert truncate_preview("x" * 100) == "x" * 100
    assert truncate_preview("x" * 101) == "x" * 100 + "..."


def test_chat_digest_structure():
    payload = format_chat_digest(make_summary())
    blocks = payload["blocks"]

    assert blocks[0]["type"] == "header"
    assert "Daily Feedback Digest" in blocks[0]["text"]["text"]

    fields = [f["text"] for f in blocks[1]["fields"]]
    assert fields == [
        "*Total Feedback:* 42",
        "*Positive:* 10",
        "*Neutral:* 5",
        "*Negative:* 20",
    ]


def test_chat_digest_limits_themes_and_negative_items():
    blocks = format_chat_digest(make_summary())["blocks"]

    themes_text = blocks[2]["text"]["text"]
    assert themes_text.startswith("*Top Themes:*\n1. Theme 0 (20)")
    assert "5. Theme 4 (16)" in themes_text
    assert "Theme 5" not in themes_text

    negative_text = blocks[3]["text"]["text"]
    lines = negative_text.split("\n")[1:]
    assert len(lines) == 5
    assert lines[0] == "• [ID:100] Negative item 0"
    assert "Nice!" not in negative_text
    assert "Pending" not in negative_text


def test_chat_digest_truncates_long_feedback():
    summary = SummaryView(
        counts_by_sentiment={"positive": 0, "neutral": 0, "negative": 1},
        recent_feedback=[RecentFeedback(id=7, source="s", timestamp="t", text="y" * 150, sentiment="negative")]
    )

    negative_text = format_chat_digest(summary)["blocks"][3]["text"]["text"]

    assert f"[ID:7] {'y' * 100}..." in negative_text


def test_chat_digest_empty_placeholders():
    summary = SummaryView(counts_by_sentiment={"positive": 0, "neutral": 0, "negative": 0})
    blocks = format_chat_digest(summary)["blocks"]

    assert blocks[2]["text"]["text"] == "*Top Themes:*\nNone yet"
    assert blocks[3]["text"]["text"] == "*Recent Negative Feedback:*\nNone"


def test_email_digest():
    digest = format_email_digest(make_summary(), report_date="2024-07-01")

    assert digest.subject == "Daily Feedback Report - 2024-07-01"
    body = digest.body_text
    assert body.startswith("Daily Feedback Report (2024-07-01)")
    assert "Total feedback: 42" in body
    assert "- Positive: 10" in body
    assert "- Neutral: 5" in body
    assert "- Negative: 20" in body
    assert "- Theme 4 (16)" in body
    assert "Theme 5" not in body
    assert "[ID:104] Negative item 4" in body
    assert "[ID:105]" not in body


def test_email_digest_empty_summary():
    summary = SummaryView(counts_by_sentiment={"positive": 0, "neutral": 0, "negative": 0})
    body = format_email_digest(summary, report_date="2024-07-01").body_text

    assert "- (no themes yet)" in body
    assert "- (none)" in body


def test_formatters_are_deterministic():
    summary = make_summary()

    assert format_chat_digest(summary) == format_chat_digest(summary)
    assert format_email_digest(summary, "2024-07-01") == format_email_digest(summary, "2024-07-01")
