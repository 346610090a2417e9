"""
Summary Aggregator.

Rolls the store's feedback and analyses up into a SummaryView:
totals, per-source and per-sentiment counts, theme ranking, and the
recent-feedback window.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List

from feedbacklens.models.analysis import SENTIMENTS
from feedbacklens.models.summary import SummaryView, ThemeCount
from feedbacklens.utils.storage import FeedbackStore

logger = logging.getLogger(__name__)


def rank_themes(theme_lists: Iterable[List[str]], limit: int = 10) -> List[ThemeCount]:
    """
    Count theme occurrences and return the top `limit`.

    Themes match exactly (case-sensitive, no fuzzy merging). Ties keep
    first-seen order.
    """
    theme_counts = Counter()
    for themes in theme_lists:
        theme_counts.update(themes)

    return [
        ThemeCount(theme=theme, count=count)
        for theme, count in theme_counts.most_common(limit)
    ]


def sentiment_distribution(raw_counts: Dict[str, int]) -> Dict[str, int]:
    """Sentiment counts with all three keys always present."""
    counts = {sentiment: 0 for sentiment in SENTIMENTS}
    for sentiment, count in raw_counts.items():
        if sentiment in counts:
            counts[sentiment] = count
        else:
            logger.warning(f"Ignoring unknown sentiment value in store: {sentiment!r}")
    return counts


class SummaryAggregator:
    """
    Computes SummaryView from the current store state.

    Read-only and uncached: each call reflects the store at read time.
    """

    def __init__(
        self,
        store: FeedbackStore,
        top_themes_limit: int = 10,
        recent_limit: int = 20
    ):
        """
        Initialize summary aggregator.

        Args:
            store: Store to read from
            top_themes_limit: Maximum number of ranked themes
            recent_limit: Size of the recent-feedback window
        """
        self.store = store
        self.top_themes_limit = top_themes_limit
        self.recent_limit = recent_limit

    def compute_summary(self) -> SummaryView:
        """Build the summary view."""
        summary = SummaryView(
            total_count=self.store.count_feedback(),
            counts_by_source=self.store.count_by_source(),
            counts_by_sentiment=sentiment_distribution(self.store.count_by_sentiment()),
            top_themes=rank_themes(self.store.iter_theme_lists(), self.top_themes_limit),
            recent_feedback=self.store.get_recent_feedback(self.recent_limit)
        )

        logger.info(
            f"Computed summary: {summary.total_count} feedback items, "
            f"{len(summary.top_themes)} top themes, "
            f"{len(summary.recent_feedback)} recent"
        )
        return summary
