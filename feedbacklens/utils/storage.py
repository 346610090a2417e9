"""
Storage utility.

Persistence for raw feedback and its analysis, plus the read primitives
the aggregator needs. Two backends share one contract:

- InMemoryFeedbackStore: lock-guarded dicts (tests, local runs)
- SQLiteFeedbackStore: stdlib sqlite3 database file
"""

import json
import logging
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import closing
from dataclasses import replace
from datetime import datetime, timezone
from itertools import count
from typing import Dict, Iterator, List, Optional

from feedbacklens.models.analysis import FeedbackAnalysis
from feedbacklens.models.feedback import FeedbackItem
from feedbacklens.models.summary import RecentFeedback

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for store-level failures."""


class ReferentialIntegrityError(StoreError, LookupError):
    """Raised when an analysis references a feedback item that does not exist."""


class DuplicateAnalysisError(StoreError):
    """Raised when a feedback item already has an analysis."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FeedbackStore(ABC):
    """
    Contract between the analysis core and a persistence engine.

    Lookups by id return None when absent; they never raise.
    """

    @abstractmethod
    def insert_feedback(self, item: FeedbackItem) -> int:
        """Persist a feedback item and return its new id."""

    @abstractmethod
    def get_pending_feedback(self, limit: int = 25) -> List[FeedbackItem]:
        """
        Return feedback items that have no analysis yet.

        Ordered by timestamp descending (id descending on ties), at most `limit`.
        """

    @abstractmethod
    def get_feedback_by_id(self, feedback_id: int) -> Optional[FeedbackItem]:
        """Retrieve a feedback item. Returns None if not found."""

    @abstractmethod
    def insert_analysis(self, analysis: FeedbackAnalysis) -> int:
        """
        Persist an analysis and return its new id.

        Raises:
            ReferentialIntegrityError: If analysis.feedback_id is unknown
            DuplicateAnalysisError: If the feedback item is already analyzed
        """

    @abstractmethod
    def get_analysis_by_feedback_id(self, feedback_id: int) -> Optional[FeedbackAnalysis]:
        """Retrieve the analysis for a feedback item. Returns None if not found."""

    # Aggregation read primitives

    @abstractmethod
    def count_feedback(self) -> int:
        """Total number of feedback items."""

    @abstractmethod
    def count_by_source(self) -> Dict[str, int]:
        """Feedback counts per source, ordered by count descending."""

    @abstractmethod
    def count_by_sentiment(self) -> Dict[str, int]:
        """Analysis counts per stored sentiment value."""

    @abstractmethod
    def iter_theme_lists(self) -> Iterator[List[str]]:
        """Yield the themes list of every analysis, in insertion order."""

    @abstractmethod
    def get_recent_feedback(self, limit: int = 20) -> List[RecentFeedback]:
        """
        Most recent feedback by timestamp, left-joined with analysis.
        """


class InMemoryFeedbackStore(FeedbackStore):
    """
    Process-local store backed by dicts.

    A single lock serializes writes so concurrent analysis inserts for
    different feedback ids cannot interfere.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._feedback: Dict[int, FeedbackItem] = {}
        self._analyses: Dict[int, FeedbackAnalysis] = {}  # feedback_id -> analysis
        self._feedback_ids = count(1)
        self._analysis_ids = count(1)

    def insert_feedback(self, item: FeedbackItem) -> int:
        with self._lock:
            feedback_id = next(self._feedback_ids)
            self._feedback[feedback_id] = replace(item, id=feedback_id, created_at=_utc_now())
        logger.debug(f"Inserted feedback {feedback_id} from source={item.source}")
        return feedback_id

    def get_pending_feedback(self, limit: int = 25) -> List[FeedbackItem]:
        with self._lock:
            pending = [
                item for fid, item in self._feedback.items()
                if fid not in self._analyses
            ]
        pending.sort(key=lambda i: (i.timestamp, i.id), reverse=True)
        return pending[:limit]

    def get_feedback_by_id(self, feedback_id: int) -> Optional[FeedbackItem]:
        return self._feedback.get(feedback_id)

    def insert_analysis(self, analysis: FeedbackAnalysis) -> int:
        with self._lock:
            if analysis.feedback_id not in self._feedback:
                raise ReferentialIntegrityError(
                    f"Feedback not found: {analysis.feedback_id}"
                )
            if analysis.feedback_id in self._analyses:
                raise DuplicateAnalysisError(
                    f"Feedback {analysis.feedback_id} already has an analysis"
                )
            analysis_id = next(self._analysis_ids)
            self._analyses[analysis.feedback_id] = replace(
                analysis,
                themes=list(analysis.themes),
                id=analysis_id,
                analyzed_at=_utc_now()
            )
        logger.debug(f"Inserted analysis {analysis_id} for feedback {analysis.feedback_id}")
        return analysis_id

    def get_analysis_by_feedback_id(self, feedback_id: int) -> Optional[FeedbackAnalysis]:
        analysis = self._analyses.get(feedback_id)
        if analysis is None:
            return None
        return replace(analysis, themes=list(analysis.themes))

    def count_feedback(self) -> int:
        return len(self._feedback)

    def count_by_source(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        with self._lock:
            for item in self._feedback.values():
                counts[item.source] = counts.get(item.source, 0) + 1
        return dict(sorted(counts.items(), key=lambda kv: kv[1], reverse=True))

    def count_by_sentiment(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        with self._lock:
            for analysis in self._analyses.values():
                counts[analysis.sentiment] = counts.get(analysis.sentiment, 0) + 1
        return counts

    def iter_theme_lists(self) -> Iterator[List[str]]:
        with self._lock:
            ordered = sorted(self._analyses.values(), key=lambda a: a.id)
        for analysis in ordered:
            yield list(analysis.themes)

    def get_recent_feedback(self, limit: int = 20) -> List[RecentFeedback]:
        with self._lock:
            items = sorted(
                self._feedback.values(),
                key=lambda i: (i.timestamp, i.id),
                reverse=True
            )[:limit]
            analyses = {i.id: self._analyses.get(i.id) for i in items}

        rows = []
        for item in items:
            analysis = analyses[item.id]
            rows.append(RecentFeedback(
                id=item.id,
                source=item.source,
                timestamp=item.timestamp,
                text=item.text,
                product=item.product,
                sentiment=analysis.sentiment if analysis else None,
                themes=list(analysis.themes) if analysis else None,
                summary=analysis.summary if analysis else None,
                urgency=analysis.urgency if analysis else None
            ))
        return rows


_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS feedback_raw (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    product       TEXT,
    text          TEXT    NOT NULL,
    source        TEXT    NOT NULL,
    timestamp     TEXT    NOT NULL,
    user_segment  TEXT,
    region        TEXT,
    area          TEXT,
    rating        INTEGER,
    created_at    TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS feedback_analysis (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    feedback_id    INTEGER NOT NULL UNIQUE REFERENCES feedback_raw(id),
    sentiment      TEXT    NOT NULL,
    themes         TEXT    NOT NULL,
    summary        TEXT    NOT NULL,
    urgency        INTEGER NOT NULL,
    model_version  TEXT    NOT NULL,
    analyzed_at    TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_feedback_timestamp ON feedback_raw(timestamp);
CREATE INDEX IF NOT EXISTS idx_feedback_source ON feedback_raw(source);
"""

_PENDING_SQL = """\
SELECT fr.*
FROM feedback_raw fr
LEFT JOIN feedback_analysis fa ON fr.id = fa.feedback_id
WHERE fa.id IS NULL
ORDER BY fr.timestamp DESC, fr.id DESC
LIMIT ?
"""

_RECENT_SQL = """\
SELECT
    fr.id,
    fr.source,
    fr.timestamp,
    fr.text,
    fr.product,
    fa.sentiment,
    fa.themes,
    fa.summary,
    fa.urgency
FROM feedback_raw fr
LEFT JOIN feedback_analysis fa ON fr.id = fa.feedback_id
ORDER BY fr.timestamp DESC, fr.id DESC
LIMIT ?
"""


class SQLiteFeedbackStore(FeedbackStore):
    """
    SQLite-backed store.

    Opens one connection per operation, so instances are safe to share
    across worker threads. Foreign keys and the UNIQUE(feedback_id)
    constraint enforce referential integrity and single analysis per item.
    """

    def __init__(self, db_path: str, timeout_seconds: float = 30.0):
        """
        Initialize store and create the schema if needed.

        Args:
            db_path: Path to the SQLite database file
            timeout_seconds: How long a writer waits on a locked database

        Raises:
            ValueError: If db_path names an in-memory or temporary database
        """
        self.db_path = str(db_path)
        self.timeout_seconds = timeout_seconds

        # Each connection to these gets its own private, empty database
        if self.db_path in ("", ":memory:"):
            raise ValueError(
                f"SQLiteFeedbackStore needs a database file path, got {self.db_path!r}; "
                "use InMemoryFeedbackStore for a transient store"
            )

        parent = os.path.dirname(self.db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        with closing(self._connect()) as conn:
            conn.executescript(_SCHEMA_SQL)
            conn.commit()

        logger.info(f"Initialized SQLiteFeedbackStore with db_path={self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout_seconds)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def insert_feedback(self, item: FeedbackItem) -> int:
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute(
                """
                INSERT INTO feedback_raw
                    (product, text, source, timestamp, user_segment, region, area, rating, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.product,
                    item.text,
                    item.source,
                    item.timestamp,
                    item.user_segment,
                    item.region,
                    item.area,
                    item.rating,
                    _utc_now(),
                )
            )
            feedback_id = cursor.lastrowid

        logger.debug(f"Inserted feedback {feedback_id} from source={item.source}")
        return feedback_id

    def get_pending_feedback(self, limit: int = 25) -> List[FeedbackItem]:
        with closing(self._connect()) as conn:
            rows = conn.execute(_PENDING_SQL, (limit,)).fetchall()
        return [FeedbackItem.from_dict(dict(row)) for row in rows]

    def get_feedback_by_id(self, feedback_id: int) -> Optional[FeedbackItem]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT * FROM feedback_raw WHERE id = ?", (feedback_id,)
            ).fetchone()
        return FeedbackItem.from_dict(dict(row)) if row else None

    def insert_analysis(self, analysis: FeedbackAnalysis) -> int:
        try:
            with closing(self._connect()) as conn, conn:
                cursor = conn.execute(
                    """
                    INSERT INTO feedback_analysis
                        (feedback_id, sentiment, themes, summary, urgency, model_version, analyzed_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        analysis.feedback_id,
                        analysis.sentiment,
                        json.dumps(list(analysis.themes)),
                        analysis.summary,
                        analysis.urgency,
                        analysis.model_version,
                        _utc_now(),
                    )
                )
                analysis_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateAnalysisError(
                    f"Feedback {analysis.feedback_id} already has an analysis"
                ) from e
            raise ReferentialIntegrityError(
                f"Feedback not found: {analysis.feedback_id}"
            ) from e
        except sqlite3.OperationalError as e:
            raise StoreError(
                f"Could not write analysis for feedback {analysis.feedback_id}: {e}"
            ) from e

        logger.debug(f"Inserted analysis {analysis_id} for feedback {analysis.feedback_id}")
        return analysis_id

    def get_analysis_by_feedback_id(self, feedback_id: int) -> Optional[FeedbackAnalysis]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT * FROM feedback_analysis WHERE feedback_id = ?", (feedback_id,)
            ).fetchone()

        if not row:
            return None

        data = dict(row)
        data["themes"] = _decode_themes(data["themes"])
        return FeedbackAnalysis.from_dict(data)

    def count_feedback(self) -> int:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM feedback_raw").fetchone()
        return row["count"] if row else 0

    def count_by_source(self) -> Dict[str, int]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                """
                SELECT source, COUNT(*) AS count
                FROM feedback_raw
                GROUP BY source
                ORDER BY count DESC
                """
            ).fetchall()
        return {row["source"]: row["count"] for row in rows}

    def count_by_sentiment(self) -> Dict[str, int]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                """
                SELECT sentiment, COUNT(*) AS count
                FROM feedback_analysis
                GROUP BY sentiment
                """
            ).fetchall()
        return {row["sentiment"]: row["count"] for row in rows}

    def iter_theme_lists(self) -> Iterator[List[str]]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT themes FROM feedback_analysis ORDER BY id"
            ).fetchall()
        for row in rows:
            themes = _decode_themes(row["themes"])
            if themes is not None:
                yield themes

    def get_recent_feedback(self, limit: int = 20) -> List[RecentFeedback]:
        with closing(self._connect()) as conn:
            rows = conn.execute(_RECENT_SQL, (limit,)).fetchall()

        return [
            RecentFeedback(
                id=row["id"],
                source=row["source"],
                timestamp=row["timestamp"],
                text=row["text"],
                product=row["product"],
                sentiment=row["sentiment"],
                themes=_decode_themes(row["themes"]) if row["themes"] is not None else None,
                summary=row["summary"],
                urgency=row["urgency"]
            )
            for row in rows
        ]


def _decode_themes(raw) -> Optional[List[str]]:
    """Decode the JSON themes column. Returns None for unreadable values."""
    try:
        themes = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError:
        logger.warning(f"Unreadable themes column: {raw!r}")
        return None
    return list(themes) if isinstance(themes, list) else None
