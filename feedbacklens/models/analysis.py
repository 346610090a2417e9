"""
Analysis data model.

The structured classification derived from a single feedback item.
"""

from dataclasses import dataclass, field
from typing import List, Optional


POSITIVE = "positive"
NEUTRAL = "neutral"
NEGATIVE = "negative"
SENTIMENTS = (POSITIVE, NEUTRAL, NEGATIVE)

MAX_THEMES = 4
MIN_URGENCY = 1
MAX_URGENCY = 5
DEFAULT_URGENCY = 3

SUMMARY_FALLBACK = "Analysis completed."
FAILED_SUMMARY = "Analysis failed. Manual review recommended."
FAILED_THEMES = ("General",)


@dataclass
class NormalizedAnalysis:
    """
    Classifier output after repair, without identity fields.
    Output of the Response Normalizer.
    """
    sentiment: str  # "positive", "neutral", or "negative"
    themes: List[str]  # At most 4, order preserved
    summary: str
    urgency: int  # 1 (low) to 5 (critical)
    model_version: str

    def __post_init__(self):
        if self.sentiment not in SENTIMENTS:
            raise ValueError(
                f"Invalid sentiment: {self.sentiment}. Must be one of {', '.join(SENTIMENTS)}"
            )
        if len(self.themes) > MAX_THEMES:
            raise ValueError(f"Too many themes: {len(self.themes)}. Maximum is {MAX_THEMES}")
        if not (MIN_URGENCY <= self.urgency <= MAX_URGENCY):
            raise ValueError(f"Invalid urgency: {self.urgency}. Must be 1-5")

    def for_feedback(self, feedback_id: int) -> "FeedbackAnalysis":
        """Attach this analysis to a feedback item."""
        return FeedbackAnalysis(
            feedback_id=feedback_id,
            sentiment=self.sentiment,
            themes=list(self.themes),
            summary=self.summary,
            urgency=self.urgency,
            model_version=self.model_version
        )

    def to_dict(self) -> dict:
        return {
            "sentiment": self.sentiment,
            "themes": list(self.themes),
            "summary": self.summary,
            "urgency": self.urgency,
            "model_version": self.model_version,
        }


@dataclass
class FeedbackAnalysis:
    """
    Persisted analysis row. At most one per feedback item.
    """
    feedback_id: int
    sentiment: str
    themes: List[str] = field(default_factory=list)
    summary: str = ""
    urgency: int = DEFAULT_URGENCY
    model_version: str = ""
    analyzed_at: Optional[str] = None  # Set by the store
    id: Optional[int] = None  # Set by the store

    @classmethod
    def from_dict(cls, data: dict) -> "FeedbackAnalysis":
        return cls(
            feedback_id=data["feedback_id"],
            sentiment=data["sentiment"],
            themes=list(data.get("themes") or []),
            summary=data.get("summary", ""),
            urgency=data.get("urgency", DEFAULT_URGENCY),
            model_version=data.get("model_version", ""),
            analyzed_at=data.get("analyzed_at"),
            id=data.get("id")
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "feedback_id": self.feedback_id,
            "sentiment": self.sentiment,
            "themes": list(self.themes),
            "summary": self.summary,
            "urgency": self.urgency,
            "model_version": self.model_version,
            "analyzed_at": self.analyzed_at,
        }
