"""
Tests for the feedback store contract.

Each test runs against both the in-memory and the SQLite backend
(see the `store` fixture in conftest.py).
"""

import threading
import pytest

from feedbacklens.models.analysis import FeedbackAnalysis
from feedbacklens.models.feedback import FeedbackItem
from feedbacklens.utils.storage import (
    DuplicateAnalysisError,
    ReferentialIntegrityError,
    SQLiteFeedbackStore,
)


def make_item(text="Search is slow", source="support", timestamp="2024-06-01T10:00:00Z", **extra):
    return FeedbackItem(text=text, source=source, timestamp=timestamp, **extra)


def make_analysis(feedback_id, sentiment="negative", themes=None, urgency=4):
    return FeedbackAnalysis(
        feedback_id=feedback_id,
        sentiment=sentiment,
        themes=themes if themes is not None else ["Performance", "Search"],
        summary="User reports slow search.",
        urgency=urgency,
        model_version="v1.0"
    )


def test_insert_and_get_round_trip(store):
    item = make_item(
        product="Nova Search",
        user_segment="enterprise",
        region="EU",
        area="search",
        rating=2
    )

    feedback_id = store.insert_feedback(item)
    loaded = store.get_feedback_by_id(feedback_id)

    assert loaded.id == feedback_id
    for field_name in ("text", "source", "timestamp", "product", "user_segment", "region", "area", "rating"):
        assert getattr(loaded, field_name) == getattr(item, field_name)
    assert loaded.created_at


def test_required_fields_only(store):
    feedback_id = store.insert_feedback(make_item())
    loaded = store.get_feedback_by_id(feedback_id)

    assert loaded.product is None
    assert loaded.rating is None


def test_ids_are_unique(store):
    ids = {store.insert_feedback(make_item(text=f"Item {i}")) for i in range(5)}
    assert len(ids) == 5


def test_missing_feedback_returns_none(store):
    assert store.get_feedback_by_id(999) is None
    assert store.get_analysis_by_feedback_id(999) is None


def test_pending_ordered_by_timestamp_desc_and_limited(store):
    store.insert_feedback(make_item(text="old", timestamp="2024-06-01T00:00:00Z"))
    store.insert_feedback(make_item(text="newest", timestamp="2024-06-03T00:00:00Z"))
    store.insert_feedback(make_item(text="middle", timestamp="2024-06-02T00:00:00Z"))

    pending = store.get_pending_feedback(limit=2)

    assert [p.text for p in pending] == ["newest", "middle"]


def test_pending_excludes_analyzed_items(store):
    analyzed_id = store.insert_feedback(make_item(text="analyzed"))
    pending_id = store.insert_feedback(make_item(text="pending"))

    store.insert_analysis(make_analysis(analyzed_id))

    pending_ids = [p.id for p in store.get_pending_feedback(limit=25)]
    assert pending_ids == [pending_id]


def test_analysis_round_trip_preserves_theme_list(store):
    feedback_id = store.insert_feedback(make_item())
    analysis_id = store.insert_analysis(make_analysis(feedback_id, themes=["UI/UX", "Billing"]))

    loaded = store.get_analysis_by_feedback_id(feedback_id)

    assert loaded.id == analysis_id
    assert loaded.themes == ["UI/UX", "Billing"]
    assert isinstance(loaded.themes, list)
    assert loaded.sentiment == "negative"
    assert loaded.urgency == 4
    assert loaded.model_version == "v1.0"
    assert loaded.analyzed_at


def test_analysis_for_unknown_feedback_rejected(store):
    with pytest.raises(ReferentialIntegrityError):
        store.insert_analysis(make_analysis(12345))

    assert store.count_by_sentiment() == {}


def test_second_analysis_rejected(store):
    feedback_id = store.insert_feedback(make_item())
    store.insert_analysis(make_analysis(feedback_id))

    with pytest.raises(DuplicateAnalysisError):
        store.insert_analysis(make_analysis(feedback_id, sentiment="positive"))

    assert store.get_analysis_by_feedback_id(feedback_id).sentiment == "negative"


def test_aggregation_primitives(store):
    a = store.insert_feedback(make_item(source="app_store", timestamp="2024-06-01T00:00:00Z"))
    b = store.insert_feedback(make_item(source="support", timestamp="2024-06-02T00:00:00Z"))
    store.insert_feedback(make_item(source="support", timestamp="2024-06-03T00:00:00Z"))

    store.insert_analysis(make_analysis(a, sentiment="positive", themes=["Onboarding"]))
    store.insert_analysis(make_analysis(b, sentiment="negative", themes=["Billing", "Search"]))

    assert store.count_feedback() == 3
    assert store.count_by_source() == {"support": 2, "app_store": 1}
    assert list(store.count_by_source()) == ["support", "app_store"]
    assert store.count_by_sentiment() == {"positive": 1, "negative": 1}
    assert list(store.iter_theme_lists()) == [["Onboarding"], ["Billing", "Search"]]


def test_recent_feedback_left_join(store):
    analyzed = store.insert_feedback(make_item(text="analyzed", timestamp="2024-06-01T00:00:00Z", product="Nova"))
    store.insert_feedback(make_item(text="pending", timestamp="2024-06-02T00:00:00Z"))
    store.insert_analysis(make_analysis(analyzed, themes=["Search"]))

    recent = store.get_recent_feedback(limit=20)

    assert [r.text for r in recent] == ["pending", "analyzed"]
    assert recent[0].sentiment is None
    assert recent[0].themes is None
    assert recent[0].summary is None
    assert recent[0].urgency is None
    assert recent[1].product == "Nova"
    assert recent[1].themes == ["Search"]
    assert recent[1].urgency == 4


def test_recent_feedback_bounded(store):
    for i in range(25):
        store.insert_feedback(make_item(text=f"item {i}", timestamp=f"2024-06-01T00:00:{i:02d}Z"))

    recent = store.get_recent_feedback(limit=20)

    assert len(recent) == 20
    assert recent[0].text == "item 24"


def test_concurrent_analysis_inserts(store):
    ids = [store.insert_feedback(make_item(text=f"item {i}")) for i in range(10)]
    errors = []

    def worker(feedback_id):
        try:
            store.insert_analysis(make_analysis(feedback_id))
        except Exception as e:  # pragma: no cover - surfaced by assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(fid,)) for fid in ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert store.get_pending_feedback(limit=25) == []
    assert sum(store.count_by_sentiment().values()) == 10


def test_sqlite_store_persists_across_instances(tmp_path):
    db_path = str(tmp_path / "nested" / "feedback.db")

    first = SQLiteFeedbackStore(db_path)
    feedback_id = first.insert_feedback(make_item())
    first.insert_analysis(make_analysis(feedback_id))

    second = SQLiteFeedbackStore(db_path)

    assert second.get_feedback_by_id(feedback_id).text == "Search is slow"
    assert second.get_analysis_by_feedback_id(feedback_id).themes == ["Performance", "Search"]


@pytest.mark.parametrize("db_path", [":memory:", ""])
def test_sqlite_store_requires_file_path(db_path):
    with pytest.raises(ValueError, match="database file path"):
        SQLiteFeedbackStore(db_path)
