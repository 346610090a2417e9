"""
Response Normalizer.

Turns raw classifier text into a NormalizedAnalysis that always satisfies
the analysis invariants. Malformed fields are repaired one by one; when no
JSON object can be recovered at all, a fixed placeholder is returned.
"""

import json
import logging
import math
import re
from typing import List, Optional

from feedbacklens.models.analysis import (
    NormalizedAnalysis,
    SENTIMENTS,
    NEUTRAL,
    MAX_THEMES,
    MIN_URGENCY,
    MAX_URGENCY,
    DEFAULT_URGENCY,
    SUMMARY_FALLBACK,
    FAILED_SUMMARY,
    FAILED_THEMES,
)

logger = logging.getLogger(__name__)


_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_FENCE_OPEN_RE = re.compile(r"```json\n?")
_FENCE_RE = re.compile(r"```\n?")


class ResponseNormalizer:
    """
    Parses and repairs raw classifier output.

    normalize() is total: it never raises, whatever the input.
    """

    def __init__(self, model_version: str = "v1.0"):
        """
        Args:
            model_version: Contract tag stamped on every output
        """
        self.model_version = model_version

    def normalize(self, raw_text: Optional[str]) -> NormalizedAnalysis:
        """
        Convert raw classifier text into a valid analysis.

        Args:
            raw_text: Response text from the classifier (may be empty or garbage)

        Returns:
            NormalizedAnalysis; the fallback record if nothing is parseable
        """
        data = self._extract_json(raw_text)
        if data is None:
            return self.fallback()

        return NormalizedAnalysis(
            sentiment=self._repair_sentiment(data.get("sentiment")),
            themes=self._repair_themes(data.get("themes")),
            summary=self._repair_summary(data.get("summary")),
            urgency=self._repair_urgency(data.get("urgency")),
            model_version=self.model_version
        )

    def fallback(self) -> NormalizedAnalysis:
        """Placeholder analysis for unparseable output or a failed classifier call."""
        return NormalizedAnalysis(
            sentiment=NEUTRAL,
            themes=list(FAILED_THEMES),
            summary=FAILED_SUMMARY,
            urgency=DEFAULT_URGENCY,
            model_version=self.model_version
        )

    def _extract_json(self, raw_text: Optional[str]) -> Optional[dict]:
        """
        Locate and parse the JSON object in the response.

        Returns:
            Parsed dict, or None on total failure
        """
        if not isinstance(raw_text, str):
            logger.warning("Classifier response is not text, using fallback analysis")
            return None

        match = _JSON_OBJECT_RE.search(raw_text.strip())
        if not match:
            logger.warning("No JSON object found in classifier response, using fallback analysis")
            return None

        candidate = _FENCE_RE.sub("", _FENCE_OPEN_RE.sub("", match.group(0)))

        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, RecursionError) as e:
            logger.warning(f"Failed to parse classifier JSON, using fallback analysis: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning("Classifier JSON is not an object, using fallback analysis")
            return None

        return data

    @staticmethod
    def _repair_sentiment(value) -> str:
        if value in SENTIMENTS:
            return value
        logger.debug(f"Coercing sentiment {value!r} to {NEUTRAL}")
        return NEUTRAL

    @staticmethod
    def _repair_themes(value) -> List[str]:
        if not isinstance(value, list):
            return []

        themes = [
            item.strip() for item in value
            if isinstance(item, str) and item.strip()
        ]
        return themes[:MAX_THEMES]

    @staticmethod
    def _repair_summary(value) -> str:
        if not isinstance(value, str) or not value.strip():
            return SUMMARY_FALLBACK
        return value.strip()

    @staticmethod
    def _repair_urgency(value) -> int:
        number = _as_number(value)
        if number is None:
            return DEFAULT_URGENCY

        if isinstance(number, float) and math.isinf(number):
            return MAX_URGENCY if number > 0 else MIN_URGENCY

        # Round half up, then clamp
        rounded = number if isinstance(number, int) else int(math.floor(number + 0.5))
        return max(MIN_URGENCY, min(MAX_URGENCY, rounded))


def _as_number(value) -> Optional[float]:
    """Interpret value as a number (infinities included), or None."""
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, int):
        return value
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if math.isnan(number):
        return None
    return number
