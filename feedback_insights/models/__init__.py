"""Shared dataclasses and type definitions for the feedback insights pipeline."""

from .analysis import (
    BatchResult,
    BatchUpsertResult,
    ClassificationResult,
    IndexAllResult,
    IndexMatch,
    ItemResult,
    SearchMatch,
)
from .analytics import AnalyticsSnapshot, DailyCount, ThemeCount
from .feedback import SENTIMENTS, URGENCY_LEVELS, CriticalFlag, FeedbackItem

__all__ = [
    "AnalyticsSnapshot",
    "BatchResult",
    "BatchUpsertResult",
    "ClassificationResult",
    "CriticalFlag",
    "DailyCount",
    "FeedbackItem",
    "IndexAllResult",
    "IndexMatch",
    "ItemResult",
    "SENTIMENTS",
    "SearchMatch",
    "ThemeCount",
    "URGENCY_LEVELS",
]
