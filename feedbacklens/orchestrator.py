"""
Pipeline Orchestrator.

Coordinates ingestion, analysis of pending feedback, summary computation
and digest delivery over a single store.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from config.settings import Settings
from feedbacklens.agents.aggregation import SummaryAggregator
from feedbacklens.agents.analysis import FeedbackAnalyzer
from feedbacklens.agents.digest import format_chat_digest, format_email_digest
from feedbacklens.agents.ingestion import FeedbackIngestionAgent
from feedbacklens.agents.normalization import ResponseNormalizer
from feedbacklens.models.analysis import NormalizedAnalysis
from feedbacklens.models.feedback import FeedbackItem
from feedbacklens.models.summary import SummaryView
from feedbacklens.utils.storage import FeedbackStore, StoreError

logger = logging.getLogger(__name__)


class FeedbackNotFoundError(LookupError):
    """Raised when analysis is requested for an unknown feedback id."""


class ConfigurationError(RuntimeError):
    """Raised when a required setting (webhook URL, API key, ...) is missing."""


@dataclass
class AnalysisOutcome:
    feedback_id: int
    analysis_id: int
    analysis: NormalizedAnalysis

    def to_dict(self) -> dict:
        return {
            "feedback_id": self.feedback_id,
            "analysis_id": self.analysis_id,
            **self.analysis.to_dict(),
        }


@dataclass
class AnalysisFailure:
    feedback_id: int
    error: str


@dataclass
class BatchAnalysisResult:
    """
    Result of one pending-analysis run.
    Items that fell back to placeholder analyses still count as analyzed.
    """
    results: List[AnalysisOutcome] = field(default_factory=list)
    failures: List[AnalysisFailure] = field(default_factory=list)

    @property
    def analyzed(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        return {
            "analyzed": self.analyzed,
            "results": [r.to_dict() for r in self.results],
            "failures": [{"feedback_id": f.feedback_id, "error": f.error} for f in self.failures],
        }


class FeedbackPipeline:
    """
    Orchestrates the feedback analysis pipeline.

    1. Ingestion -> 2. Classification -> 3. Normalization -> 4. Persistence

    On demand: Summary aggregation -> Digest formatting -> Delivery
    """

    def __init__(
        self,
        settings: Settings,
        store: FeedbackStore,
        classifier,
        chat_sender=None,
        email_sender=None
    ):
        """
        Initialize pipeline.

        Args:
            settings: Runtime configuration
            store: Feedback store (shared resource)
            classifier: Object exposing classify(text) -> str
            chat_sender: Object exposing send(payload) -> bool
            email_sender: Object exposing send(digest, recipients) -> bool
        """
        self.settings = settings
        self.store = store
        self.chat_sender = chat_sender
        self.email_sender = email_sender

        self.ingestion_agent = FeedbackIngestionAgent(store)
        self.analyzer = FeedbackAnalyzer(
            classifier=classifier,
            normalizer=ResponseNormalizer(model_version=settings.model_version)
        )
        self.aggregator = SummaryAggregator(
            store=store,
            top_themes_limit=settings.top_themes_limit,
            recent_limit=settings.recent_feedback_limit
        )

    def submit_feedback(self, payload: dict) -> int:
        """Validate and store one feedback payload. Returns its id."""
        return self.ingestion_agent.ingest(payload)

    def analyze_pending(self, limit: Optional[int] = None) -> BatchAnalysisResult:
        """
        Analyze up to `limit` pending feedback items.

        Items are independent: a store error on one is logged and recorded
        in `failures` without stopping the others.

        Args:
            limit: Maximum items to process (defaults to settings.default_pending_limit)

        Returns:
            BatchAnalysisResult with per-item outcomes
        """
        limit = limit or self.settings.default_pending_limit
        pending = self.store.get_pending_feedback(limit)
        logger.info(f"Analyzing {len(pending)} pending feedback items")

        workers = max(1, self.settings.analysis_max_workers)
        if workers == 1 or len(pending) <= 1:
            outcomes = [self._process_item_safely(item) for item in pending]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(self._process_item_safely, pending))

        batch = BatchAnalysisResult()
        for outcome in outcomes:
            if isinstance(outcome, AnalysisFailure):
                batch.failures.append(outcome)
            else:
                batch.results.append(outcome)

        logger.info(
            f"Batch complete: {batch.analyzed} analyzed, {len(batch.failures)} failed"
        )
        return batch

    def analyze_feedback(self, feedback_id: int) -> AnalysisOutcome:
        """
        Analyze one feedback item by id.

        Raises:
            FeedbackNotFoundError: If the id is unknown
            StoreError: If persistence fails (e.g. already analyzed)
        """
        item = self.store.get_feedback_by_id(feedback_id)
        if item is None:
            raise FeedbackNotFoundError(f"Feedback not found: {feedback_id}")
        return self._process_item(item)

    def compute_summary(self) -> SummaryView:
        return self.aggregator.compute_summary()

    def send_chat_digest(self) -> bool:
        """
        Format and post the Slack digest.

        Raises:
            ConfigurationError: If no chat sender is configured
        """
        if self.chat_sender is None:
            raise ConfigurationError("SLACK_WEBHOOK_URL not configured")

        payload = format_chat_digest(self.compute_summary())
        return self.chat_sender.send(payload)

    def send_email_digest(self, report_date: Optional[str] = None) -> bool:
        """
        Format and send the daily report email.

        Raises:
            ConfigurationError: If no email sender or recipients are configured
        """
        if self.email_sender is None:
            raise ConfigurationError("MAILCHANNELS_API_KEY or REPORT_FROM not configured")
        if not self.settings.report_recipients:
            raise ConfigurationError("REPORT_RECIPIENTS not configured")

        digest = format_email_digest(self.compute_summary(), report_date=report_date)
        return self.email_sender.send(digest, self.settings.report_recipients)

    def _process_item(self, item: FeedbackItem) -> AnalysisOutcome:
        """classify -> normalize -> persist for one item."""
        analysis = self.analyzer.analyze(item.text)
        analysis_id = self.store.insert_analysis(analysis.for_feedback(item.id))
        logger.debug(f"Persisted analysis {analysis_id} for feedback {item.id}")
        return AnalysisOutcome(
            feedback_id=item.id,
            analysis_id=analysis_id,
            analysis=analysis
        )

    def _process_item_safely(self, item: FeedbackItem):
        try:
            return self._process_item(item)
        except StoreError as e:
            logger.error(f"Failed to persist analysis for feedback {item.id}: {e}")
            return AnalysisFailure(feedback_id=item.id, error=str(e))
