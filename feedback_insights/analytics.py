"""Analytics read model with a TTL cache port."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Protocol, Tuple

import pandas as pd

from .exceptions import InvalidationError
from .models.analytics import AnalyticsSnapshot, DailyCount, ThemeCount
from .models.feedback import SENTIMENTS, utc_now
from .storage import FeedbackStore

logger = logging.getLogger(__name__)


class CachePort(Protocol):
    """Key-value cache with per-entry expiry."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryCache:
    """Process-local TTL cache. Share an instance explicitly between callers."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class AnalyticsService:
    """Read-through cache around the aggregate analytics snapshot."""

    def __init__(
        self,
        store: FeedbackStore,
        cache: CachePort,
        cache_key: str = "analytics:latest",
        ttl_seconds: int = 300,
        top_themes: int = 5,
        timeline_days: int = 7,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.cache = cache
        self.cache_key = cache_key
        self.ttl_seconds = ttl_seconds
        self.top_themes = top_themes
        self.timeline_days = timeline_days
        self._now = now

    def get_snapshot(self) -> AnalyticsSnapshot:
        cached = self.cache.get(self.cache_key)
        if cached:
            logger.debug("Returning cached analytics")
            try:
                snapshot = AnalyticsSnapshot.model_validate_json(cached)
                return snapshot.model_copy(update={"cached": True})
            except ValueError:
                logger.warning("Discarding unreadable analytics cache entry")

        snapshot = self.compute_snapshot()
        self.cache.put(self.cache_key, snapshot.model_dump_json(), self.ttl_seconds)
        return snapshot

    def invalidate(self) -> bool:
        """Delete the cached snapshot. Failures are logged, never raised."""

        try:
            self._delete()
        except InvalidationError as exc:
            logger.warning("Failed to clear analytics cache: %s", exc)
            return False
        logger.info("Analytics cache cleared")
        return True

    def _delete(self) -> None:
        try:
            self.cache.delete(self.cache_key)
        except Exception as exc:
            raise InvalidationError(str(exc)) from exc

    def compute_snapshot(self) -> AnalyticsSnapshot:
        now = self._now()
        items = self.store.all_feedback()
        df = pd.DataFrame(
            [
                {
                    "sentiment": item.sentiment,
                    "sentiment_score": item.sentiment_score,
                    "themes": item.themes,
                    "created_at": item.created_at,
                }
                for item in items
            ],
            columns=["sentiment", "sentiment_score", "themes", "created_at"],
        )

        breakdown = {sentiment: 0 for sentiment in SENTIMENTS}
        counts = df["sentiment"].dropna().value_counts()
        for sentiment, count in counts.items():
            if sentiment in breakdown:
                breakdown[sentiment] = int(count)

        scores = pd.to_numeric(df["sentiment_score"], errors="coerce").dropna()
        avg_score = round(float(scores.mean()), 2) if not scores.empty else 0.0

        return AnalyticsSnapshot(
            total_feedback=len(df),
            sentiment_breakdown=breakdown,
            avg_sentiment_score=avg_score,
            top_themes=self._top_themes(df),
            last_7_days=self._timeline(df, now),
            generated_at=now,
        )

    def _top_themes(self, df: pd.DataFrame) -> List[ThemeCount]:
        themes = df["themes"].dropna().explode().dropna()
        if themes.empty:
            return []
        counts = themes.value_counts()
        # value_counts order is not stable across ties; order by count then name
        ordered = sorted(counts.items(), key=lambda pair: (-int(pair[1]), str(pair[0])))
        return [ThemeCount(theme=str(theme), count=int(count)) for theme, count in ordered[: self.top_themes]]

    def _timeline(self, df: pd.DataFrame, now: datetime) -> List[DailyCount]:
        if df.empty:
            return []
        created = pd.to_datetime(df["created_at"])
        recent = created[created >= pd.Timestamp(now - timedelta(days=self.timeline_days))]
        if recent.empty:
            return []
        per_day = recent.dt.strftime("%Y-%m-%d").value_counts().sort_index(ascending=False)
        return [DailyCount(date=str(day), count=int(count)) for day, count in per_day.items()]
