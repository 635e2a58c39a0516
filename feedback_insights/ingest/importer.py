"""CSV ingestion of raw feedback records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from feedback_insights.analytics import AnalyticsService
from feedback_insights.models.feedback import FeedbackItem
from feedback_insights.storage import FeedbackStore


@dataclass(slots=True)
class ImportResult:
    """Outcome of a CSV import run."""

    created: List[FeedbackItem] = field(default_factory=list)
    skipped_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)


class FeedbackImporter:
    """Loads feedback rows from CSV into the store and invalidates analytics."""

    REQUIRED_COLUMNS = {"source", "content"}

    def __init__(self, store: FeedbackStore, analytics: Optional[AnalyticsService] = None) -> None:
        self._store = store
        self._analytics = analytics

    def ingest_from_csv(self, path: Path) -> ImportResult:
        df = self._read_csv(path)
        result = ImportResult()

        for idx, row in enumerate(df.to_dict(orient="records"), start=1):
            try:
                source = self._require_str(row.get("source"), "source")
                content = self._require_str(row.get("content"), "content")
                created_at = self._parse_datetime(row.get("created_at"))
            except ValueError as exc:
                result.errors.append(f"row {idx}: {exc}")
                result.skipped_count += 1
                continue

            result.created.append(
                self._store.create(
                    source=source,
                    content=content,
                    author=self._get_optional_str(row.get("author")),
                    attachment_ref=self._get_optional_str(row.get("attachment_ref")),
                    created_at=created_at,
                )
            )

        if result.created and self._analytics is not None:
            self._analytics.invalidate()
        return result

    def _read_csv(self, path: Path) -> pd.DataFrame:
        if not path.exists():
            raise FileNotFoundError(f"Feedback CSV not found: {path}")

        df = pd.read_csv(path)
        missing = self.REQUIRED_COLUMNS.difference(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {', '.join(sorted(missing))}")
        return df

    def _parse_datetime(self, value: Optional[object]) -> Optional[datetime]:
        if value is None or self._is_missing(value):
            return None
        try:
            parsed = pd.to_datetime(value, errors="raise")
        except (ValueError, TypeError) as exc:
            raise ValueError(f"created_at is not a valid timestamp: {value}") from exc
        if parsed.tzinfo is not None:
            parsed = parsed.tz_convert("UTC").tz_localize(None)
        return parsed.to_pydatetime()

    @staticmethod
    def _require_str(value: Optional[object], field: str) -> str:
        if value is None or FeedbackImporter._is_missing(value):
            raise ValueError(f"{field} is empty")
        return str(value).strip()

    @staticmethod
    def _get_optional_str(value: Optional[object]) -> Optional[str]:
        if value is None or FeedbackImporter._is_missing(value):
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def _is_missing(value: object) -> bool:
        if value is None:
            return True
        if isinstance(value, float) and pd.isna(value):
            return True
        if isinstance(value, str) and not value.strip():
            return True
        return False
