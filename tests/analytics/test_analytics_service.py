from datetime import datetime, timedelta

import pytest

from feedback_insights.analytics import AnalyticsService, InMemoryCache
from feedback_insights.models.analysis import ClassificationResult
from feedback_insights.storage import InMemoryFeedbackStore

NOW = datetime(2024, 5, 10, 12, 0, 0)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class BrokenDeleteCache(InMemoryCache):
    def delete(self, key: str) -> None:
        raise ConnectionError("cache unreachable")


def labelled_store() -> InMemoryFeedbackStore:
    store = InMemoryFeedbackStore()
    rows = [
        ("positive", 0.8, ["support"], 0),
        ("negative", -0.6, ["bugs", "performance"], 0),
        ("negative", -0.4, ["bugs"], 1),
        ("neutral", 0.0, ["pricing", "security", "ui_ux"], 3),
    ]
    for sentiment, score, themes, days_ago in rows:
        item = store.create("email", f"{sentiment} feedback", created_at=NOW - timedelta(days=days_ago, hours=1))
        store.update_classification(item.id, ClassificationResult(sentiment, score, "medium", themes))
    # unprocessed and outside the window
    store.create("discord", "old and unlabelled", created_at=NOW - timedelta(days=30))
    return store


def test_snapshot_aggregates_store() -> None:
    service = AnalyticsService(labelled_store(), InMemoryCache(), now=lambda: NOW)

    snapshot = service.compute_snapshot()

    assert snapshot.total_feedback == 5
    assert snapshot.sentiment_breakdown == {"positive": 1, "neutral": 1, "negative": 2}
    assert snapshot.avg_sentiment_score == pytest.approx(-0.05)
    # six distinct themes; ui_ux sorts last and is cut by the top-five limit
    assert [(t.theme, t.count) for t in snapshot.top_themes] == [
        ("bugs", 2),
        ("performance", 1),
        ("pricing", 1),
        ("security", 1),
        ("support", 1),
    ]
    assert [(d.date, d.count) for d in snapshot.last_7_days] == [
        ("2024-05-10", 2),
        ("2024-05-09", 1),
        ("2024-05-07", 1),
    ]
    assert snapshot.generated_at == NOW


def test_empty_store_snapshot() -> None:
    snapshot = AnalyticsService(InMemoryFeedbackStore(), InMemoryCache(), now=lambda: NOW).compute_snapshot()

    assert snapshot.total_feedback == 0
    assert snapshot.sentiment_breakdown == {"positive": 0, "neutral": 0, "negative": 0}
    assert snapshot.avg_sentiment_score == 0.0
    assert snapshot.top_themes == []
    assert snapshot.last_7_days == []


def test_read_through_cache_until_ttl_expires() -> None:
    clock = FakeClock()
    store = labelled_store()
    service = AnalyticsService(store, InMemoryCache(clock=clock), ttl_seconds=300, now=lambda: NOW)

    first = service.get_snapshot()
    store.create("email", "new one", created_at=NOW)
    second = service.get_snapshot()

    assert first.cached is False
    assert second.cached is True
    assert second.total_feedback == 5

    clock.now += 301
    third = service.get_snapshot()
    assert third.cached is False
    assert third.total_feedback == 6


def test_invalidate_forces_recompute() -> None:
    store = labelled_store()
    service = AnalyticsService(store, InMemoryCache(), now=lambda: NOW)
    service.get_snapshot()
    store.create("email", "new one", created_at=NOW)

    assert service.invalidate() is True
    assert service.get_snapshot().total_feedback == 6


def test_failed_invalidation_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    service = AnalyticsService(InMemoryFeedbackStore(), BrokenDeleteCache(), now=lambda: NOW)

    assert service.invalidate() is False
    assert "Failed to clear analytics cache" in caplog.text


def test_cached_flag_is_not_serialised() -> None:
    service = AnalyticsService(labelled_store(), InMemoryCache(), now=lambda: NOW)
    service.get_snapshot()

    assert "cached" not in service.get_snapshot().model_dump()


def test_cache_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValueError):
        InMemoryCache().put("key", "value", 0)
