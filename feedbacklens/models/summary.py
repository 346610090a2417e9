"""
Summary view model.

Derived, transient roll-up of the store, produced by the aggregator.
Serializes to the camelCase shape consumed by dashboards and digests.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ThemeCount:
    theme: str
    count: int

    def to_dict(self) -> dict:
        return {"theme": self.theme, "count": self.count}


@dataclass
class RecentFeedback:
    """
    A recent feedback item joined with its analysis.
    Analysis fields are None while the item is pending.
    """
    id: int
    source: str
    timestamp: str
    text: str
    product: Optional[str] = None
    sentiment: Optional[str] = None
    themes: Optional[List[str]] = None
    summary: Optional[str] = None
    urgency: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "timestamp": self.timestamp,
            "text": self.text,
            "product": self.product,
            "sentiment": self.sentiment,
            "themes": list(self.themes) if self.themes is not None else None,
            "summary": self.summary,
            "urgency": self.urgency,
        }


@dataclass
class SummaryView:
    total_count: int = 0
    counts_by_source: Dict[str, int] = field(default_factory=dict)
    counts_by_sentiment: Dict[str, int] = field(default_factory=dict)
    top_themes: List[ThemeCount] = field(default_factory=list)
    recent_feedback: List[RecentFeedback] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to the summary wire shape (camelCase field names)."""
        return {
            "totalCount": self.total_count,
            "countsBySource": dict(self.counts_by_source),
            "countsBySentiment": dict(self.counts_by_sentiment),
            "topThemes": [t.to_dict() for t in self.top_themes],
            "recentFeedback": [r.to_dict() for r in self.recent_feedback],
        }
