"""
Feedback Analyzer.

Runs one feedback text through the Classifier Gateway and the Response
Normalizer. Classifier failures are logged and absorbed: the normalizer's
placeholder record is returned instead, so every item yields a persistable
analysis.
"""

import logging

from feedbacklens.agents.normalization import ResponseNormalizer
from feedbacklens.models.analysis import NormalizedAnalysis

logger = logging.getLogger(__name__)


class FeedbackAnalyzer:
    """
    classify -> normalize for a single feedback text.
    """

    def __init__(self, classifier, normalizer: ResponseNormalizer):
        """
        Args:
            classifier: Object exposing classify(text) -> str
            normalizer: Response normalizer
        """
        self.classifier = classifier
        self.normalizer = normalizer

    def analyze(self, text: str) -> NormalizedAnalysis:
        """
        Classify and normalize feedback text.

        Never raises on classifier errors or malformed output.
        """
        try:
            raw_response = self.classifier.classify(text)
        except Exception as e:
            logger.error(f"Classifier error, using fallback analysis: {e}")
            raw_response = ""

        analysis = self.normalizer.normalize(raw_response)
        logger.debug(
            f"Analyzed feedback: sentiment={analysis.sentiment}, "
            f"urgency={analysis.urgency}, themes={analysis.themes}"
        )
        return analysis
