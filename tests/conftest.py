"""
Shared fixtures: stores and a deterministic classifier fake.
"""

import json
import pytest

from feedbacklens.utils.storage import InMemoryFeedbackStore, SQLiteFeedbackStore


class FakeClassifier:
    """Returns canned raw responses keyed by feedback text."""

    def __init__(self, responses=None, default=None):
        self.responses = responses or {}
        self.default = default
        self.calls = []

    def classify(self, text):
        self.calls.append(text)
        response = self.responses.get(text, self.default)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response or ""


@pytest.fixture
def fake_classifier():
    return FakeClassifier(default={
        "sentiment": "neutral",
        "themes": ["General"],
        "summary": "Feedback noted.",
        "urgency": 2
    })


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Run store-level tests against both backends."""
    if request.param == "memory":
        return InMemoryFeedbackStore()
    return SQLiteFeedbackStore(str(tmp_path / "feedback.db"))


@pytest.fixture
def classifier_factory():
    """Build FakeClassifier instances with custom canned responses."""
    return FakeClassifier
