"""
Ingestion Agent.

Validates inbound feedback and writes it to the store, either one payload
at a time or row by row from a CSV export.
"""

import logging
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from feedbacklens.models.feedback import FeedbackItem, FeedbackValidationError
from feedbacklens.utils.storage import FeedbackStore

logger = logging.getLogger(__name__)


CSV_COLUMNS = [
    "product",
    "feedback_id",
    "source",
    "timestamp",
    "user_segment",
    "region",
    "area",
    "text",
    "sentiment_label",
    "urgency_hint",
    "rating",
]


@dataclass
class IngestionReport:
    success_count: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)
    inserted_ids: List[int] = field(default_factory=list)


class FeedbackIngestionAgent:
    """
    Validates and persists feedback items.

    Required fields (text, source, timestamp) are checked before anything
    touches the store.
    """

    def __init__(self, store: FeedbackStore):
        self.store = store

    def ingest(self, payload: dict) -> int:
        """
        Validate and insert one feedback payload.

        Args:
            payload: Dict with text, source, timestamp and optional
                product, user_segment, region, area, rating

        Returns:
            id assigned by the store

        Raises:
            FeedbackValidationError: If a required field is missing or invalid
        """
        item = FeedbackItem.from_dict(payload)
        feedback_id = self.store.insert_feedback(item)
        logger.debug(f"Ingested feedback {feedback_id} from {item.source}")
        return feedback_id

    def ingest_csv(self, csv_path: str) -> IngestionReport:
        """
        Ingest every row of a feedback CSV export.

        Rows that fail validation are counted and skipped; ingestion continues.
        Extra columns (feedback_id, sentiment_label, urgency_hint) are ignored.

        Args:
            csv_path: Path to CSV file with a header row

        Returns:
            IngestionReport with success/error counts
        """
        df = pd.read_csv(
            csv_path,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True
        )
        logger.info(f"Found {len(df)} rows to ingest in {csv_path}")

        missing_columns = [c for c in ("text", "source", "timestamp") if c not in df.columns]
        if missing_columns:
            raise FeedbackValidationError(
                f"CSV is missing required columns: {', '.join(missing_columns)}"
            )

        report = IngestionReport()

        for row_number, row in enumerate(df.to_dict(orient="records"), start=2):
            row_label = row.get("feedback_id") or f"row {row_number}"
            payload = {
                key: value.strip() if isinstance(value, str) else value
                for key, value in row.items()
                if key in CSV_COLUMNS
            }

            try:
                feedback_id = self.ingest(payload)
            except FeedbackValidationError as e:
                report.error_count += 1
                report.errors.append(f"{row_label}: {e}")
                logger.warning(f"Skipping {row_label}: {e}")
                continue

            report.success_count += 1
            report.inserted_ids.append(feedback_id)

        logger.info(
            f"Ingestion complete: {report.success_count} succeeded, "
            f"{report.error_count} failed"
        )
        return report
