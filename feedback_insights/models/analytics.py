"""Pydantic models for the cached analytics read model."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class ThemeCount(BaseModel):
    theme: str
    count: int


class DailyCount(BaseModel):
    date: str
    count: int


class AnalyticsSnapshot(BaseModel):
    """Aggregate view over the current feedback set."""

    total_feedback: int
    sentiment_breakdown: Dict[str, int] = Field(
        default_factory=lambda: {"positive": 0, "neutral": 0, "negative": 0}
    )
    avg_sentiment_score: float = 0.0
    top_themes: List[ThemeCount] = Field(default_factory=list)
    last_7_days: List[DailyCount] = Field(default_factory=list)
    generated_at: datetime
    cached: bool = Field(default=False, exclude=True)
